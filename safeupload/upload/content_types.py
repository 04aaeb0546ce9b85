import mimetypes
import re

DEFAULT_CONTENT_TYPE = "application/octet-stream"

# type "/" subtype, restricted-name characters only.
_MEDIA_TYPE = re.compile(r"[a-z0-9][a-z0-9!#$&^_.+-]*/[a-z0-9][a-z0-9!#$&^_.+-]*")


def resolve_content_type(declared: str | None, extension: str) -> str:
    """Pick the mime type reported for an upload.

    The declared type wins (parameters such as charset dropped). A missing,
    malformed or generic declaration falls back to a guess from the extension.
    """
    content_type = (declared or "").split(";", 1)[0].strip().lower()
    if _MEDIA_TYPE.fullmatch(content_type) and content_type != DEFAULT_CONTENT_TYPE:
        return content_type
    if extension:
        guessed, _ = mimetypes.guess_type(f"upload.{extension}")
        if guessed:
            return guessed
    return DEFAULT_CONTENT_TYPE
