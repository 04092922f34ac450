"""
=============================================================================
MIME TYPES AND SUPPORTED MEDIA FILES
=============================================================================

Two lookup tables keyed by file extension:

1. SupportedFileType - the whitelist of extensions that make a request a
   MEDIA request (the file is streamed). Anything else is treated as a
   TEXT message by the classifier.

2. MIME_TYPES - the Content-Type to send for a file that is streamed.

=============================================================================
THE WHITELIST
=============================================================================

    ┌──────────┬─────────────────────────────────────────────────────────┐
    │  IMAGE   │ jpg  jpeg  png  gif  bmp  webp                          │
    │  AUDIO   │ mp3  ogg  m4a  aac                                      │
    │  VIDEO   │ 3gp  mp4  mkv  webm                                     │
    │  TEXT    │ txt                                                     │
    └──────────┴─────────────────────────────────────────────────────────┘

These are the formats mobile media stacks decode natively. Extension
matching is case-insensitive: "IMG_0001.JPG" is a MEDIA request.

=============================================================================
"""

from enum import Enum
from pathlib import Path
from typing import Optional


class MediaKind(Enum):
    """Broad family of a supported file, used for logging."""
    IMAGE = "image"
    AUDIO = "audio"
    VIDEO = "video"
    TEXT = "text"


class SupportedFileType(Enum):
    """
    File extensions that are served as media.

    The value is (extension, kind). Member names can't start with a digit,
    hence THREE_GP for "3gp".
    """
    JPG = ("jpg", MediaKind.IMAGE)
    JPEG = ("jpeg", MediaKind.IMAGE)
    PNG = ("png", MediaKind.IMAGE)
    GIF = ("gif", MediaKind.IMAGE)
    BMP = ("bmp", MediaKind.IMAGE)
    WEBP = ("webp", MediaKind.IMAGE)

    MP3 = ("mp3", MediaKind.AUDIO)
    OGG = ("ogg", MediaKind.AUDIO)
    M4A = ("m4a", MediaKind.AUDIO)
    AAC = ("aac", MediaKind.AUDIO)

    THREE_GP = ("3gp", MediaKind.VIDEO)
    MP4 = ("mp4", MediaKind.VIDEO)
    MKV = ("mkv", MediaKind.VIDEO)
    WEBM = ("webm", MediaKind.VIDEO)

    TXT = ("txt", MediaKind.TEXT)

    @property
    def extension(self) -> str:
        return self.value[0]

    @property
    def kind(self) -> MediaKind:
        return self.value[1]

    @classmethod
    def from_extension(cls, extension: Optional[str]) -> Optional["SupportedFileType"]:
        """
        Look up an extension (without the dot), ignoring case.

        Returns None for unsupported or missing extensions.
        """
        if not extension:
            return None
        return _BY_EXTENSION.get(extension.lower())

    @classmethod
    def from_path(cls, path: str) -> Optional["SupportedFileType"]:
        """
        Look up the extension after the LAST dot anywhere in the string.

        Unlike Path.suffix, a dot in a directory name counts when the file
        name has none: "/a.b/readme" has the extension "b/readme".

        Examples:
            >>> SupportedFileType.from_path("/sdcard/DCIM/IMG_1.jpg")
            <SupportedFileType.JPG: ('jpg', <MediaKind.IMAGE: 'image'>)>
            >>> SupportedFileType.from_path("/notes/readme") is None
            True
        """
        if "." not in path:
            return None
        return cls.from_extension(path.rsplit(".", 1)[1])


_BY_EXTENSION = {t.extension: t for t in SupportedFileType}


# =============================================================================
# MIME TYPE DATABASE
# =============================================================================
#
# Maps file extensions (lowercase, with dot) to MIME types. Covers the
# whitelist above plus a handful of neighbours that show up in media folders.
#
# =============================================================================

MIME_TYPES = {
    # Images
    ".jpg": "image/jpeg",
    ".jpeg": "image/jpeg",
    ".png": "image/png",
    ".gif": "image/gif",
    ".bmp": "image/bmp",
    ".webp": "image/webp",

    # Audio
    ".mp3": "audio/mpeg",
    ".ogg": "audio/ogg",
    ".m4a": "audio/mp4",
    ".aac": "audio/aac",
    ".wav": "audio/wav",

    # Video
    ".3gp": "video/3gpp",
    ".mp4": "video/mp4",
    ".m4v": "video/mp4",     # not video/x-m4v
    ".mkv": "video/x-matroska",
    ".webm": "video/webm",

    # Text
    ".txt": "text/plain",
}

# Default MIME type for unknown extensions
# application/octet-stream = "I don't know what this is, treat as binary"
DEFAULT_MIME_TYPE = "application/octet-stream"


def get_mime_type(path: str | Path, default: Optional[str] = None) -> str:
    """
    Get the MIME type for a file based on its extension.

    Args:
        path: File path or name with extension
        default: Default MIME type if extension not found
                 Uses application/octet-stream if not specified

    Returns:
        The MIME type string

    Examples:
        >>> get_mime_type("/path/to/clip.MP4")
        'video/mp4'

        >>> get_mime_type("unknown.xyz")
        'application/octet-stream'
    """
    if isinstance(path, str):
        path = Path(path)

    extension = path.suffix.lower()  # .MP4 → .mp4
    return MIME_TYPES.get(extension, default or DEFAULT_MIME_TYPE)


def get_content_type(path: str | Path, charset: str = "utf-8") -> str:
    """
    Get the full Content-Type header value for a file.

    For text/* content, includes the charset parameter.

        >>> get_content_type("notes.txt")
        'text/plain; charset=utf-8'
        >>> get_content_type("photo.jpg")
        'image/jpeg'
    """
    mime_type = get_mime_type(path)

    if mime_type.startswith("text/"):
        return f"{mime_type}; charset={charset}"

    return mime_type
