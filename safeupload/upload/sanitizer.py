import re
import uuid
from collections.abc import Callable

PLACEHOLDER_BASE_NAME = "unnamed"
MAX_BASE_NAME_LENGTH = 128
MAX_EXTENSION_BYTES = 32
# NAME_MAX on common filesystems, counted in encoded bytes.
MAX_STORED_NAME_BYTES = 255
UUID_PREFIX_BYTES = len(f"{uuid.UUID(int=0)}_")

_FORBIDDEN_CHARS = re.compile(r'[\\/:*?"<>|\r\n\t]')
_DOT_RUN = re.compile(r"\.{2,}")


def split_extension(filename: str) -> tuple[str, str]:
    """Split a NUL-free name at its last usable dot.

    A dot is usable when it is neither the first nor the last character.
    Without one, the whole name is the base and the extension is empty.
    """
    last_dot = filename.rfind(".")
    if 0 < last_dot < len(filename) - 1:
        return filename[:last_dot], filename[last_dot + 1:]
    return filename, ""


def clean_component(value: str) -> str:
    """Make one name component safe to use on disk.

    Strips NUL bytes and surrounding whitespace, replaces path separators,
    reserved characters and CR/LF/TAB with "_", collapses dot runs to "_"
    and turns a leading dot into "_" so no hidden file can be created.
    """
    cleaned = value.replace("\x00", "").strip()
    cleaned = _FORBIDDEN_CHARS.sub("_", cleaned)
    cleaned = _DOT_RUN.sub("_", cleaned)
    if cleaned.startswith("."):
        cleaned = "_" + cleaned[1:]
    return cleaned


def truncate_utf8(value: str, max_bytes: int) -> str:
    """Cut value to at most max_bytes of UTF-8 without splitting a character.

    Lone surrogates, which cannot be written as a file name, are dropped.
    """
    return value.encode("utf-8", errors="ignore")[:max_bytes].decode("utf-8", errors="ignore")


def sanitize(original_name: str | None) -> tuple[str, str]:
    """Derive (safe_base_name, safe_extension) from an untrusted filename.

    The pair is sized so that "{uuid}_{base}.{extension}" fits in
    MAX_STORED_NAME_BYTES once encoded.
    """
    raw = (original_name or "").replace("\x00", "")
    base, extension = split_extension(raw)

    safe_extension = truncate_utf8(clean_component(extension).lower(), MAX_EXTENSION_BYTES)
    extension_bytes = len(safe_extension.encode("utf-8")) + 1 if safe_extension else 0
    base_budget = MAX_STORED_NAME_BYTES - UUID_PREFIX_BYTES - extension_bytes

    safe_base = truncate_utf8(clean_component(base)[:MAX_BASE_NAME_LENGTH], base_budget)
    # A trailing dot would merge with the extension separator into "..".
    safe_base = safe_base.rstrip(".") or PLACEHOLDER_BASE_NAME
    return safe_base, safe_extension


def build_stored_filename(
    original_name: str | None,
    uuid_factory: Callable[[], uuid.UUID] = uuid.uuid4,
) -> str:
    """Build the unique on-disk name: {uuid}_{safe_base}.{safe_extension}"""
    safe_base, safe_extension = sanitize(original_name)
    prefix = f"{uuid_factory()}_{safe_base}"
    if not safe_extension:
        return prefix
    return f"{prefix}.{safe_extension}"
