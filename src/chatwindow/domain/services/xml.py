"""XML escaping helpers for prompt serialization."""

CDATA_END = "]]>"


def escape_xml(text: str) -> str:
    """Escape text for use inside an XML attribute value.

    Args:
        text: Raw text.

    Returns:
        Text with &, <, > and double quotes escaped.
    """
    return (
        text.replace("&", "&amp;")
        .replace("<", "&lt;")
        .replace(">", "&gt;")
        .replace('"', "&quot;")
    )


def escape_xml_content(text: str) -> str:
    """Escape text for use as XML element content.

    Quotes are left alone; they are harmless outside attributes and
    escaping them would only cost tokens.

    Args:
        text: Raw text.

    Returns:
        Text with &, < and > escaped.
    """
    return text.replace("&", "&amp;").replace("<", "&lt;").replace(">", "&gt;")


def cdata(text: str) -> str:
    """Wrap raw text in a CDATA section.

    The payload is kept byte-for-byte. A literal "]]>" inside it is split
    across two sections so it cannot terminate the block early.

    Args:
        text: Raw text.

    Returns:
        CDATA section.
    """
    return "<![CDATA[" + text.replace(CDATA_END, "]]]]><![CDATA[>") + "]]>"
