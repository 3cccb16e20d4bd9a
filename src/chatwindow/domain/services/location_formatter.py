"""Location header formatting for channel environments."""

from chatwindow.domain.entities.channel import ChannelEnvironment
from chatwindow.domain.services.xml import escape_xml

DM_LOCATION = '<location type="dm">Direct Message (private one-on-one chat)</location>'


def format_location(environment: ChannelEnvironment) -> str:
    """Format a channel environment as a <location> element.

    Args:
        environment: Channel environment.

    Returns:
        Location XML.
    """
    if environment.is_dm:
        return DM_LOCATION

    lines = ['<location type="guild">']
    if environment.guild is not None:
        lines.append(f'<server name="{escape_xml(environment.guild.name)}"/>')
    channel = environment.channel
    lines.append(
        f'<channel name="{escape_xml(channel.name)}" type="{escape_xml(channel.type)}"/>'
    )
    if environment.thread is not None:
        lines.append(f'<thread name="{escape_xml(environment.thread.name)}"/>')
    lines.append("</location>")
    return "\n".join(lines)
