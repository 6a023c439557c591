"""
Protocol constants for wttp_client.

The remote engine identifies MIME types, charsets, storage locations
and languages by fixed 2-byte codes. Each table below is an
enumeration that maps both ways between the code and its text label.
"""

from enum import Enum
from typing import Dict, Optional, Type, TypeVar, Union

from .exceptions import InvalidMethodError


PROTOCOL_VERSION = "WTTP/2.0"
SUPPORTED_SCHEMES = ("wttp", "http", "https")

ZERO_ADDRESS = "0x" + "0" * 40
ZERO_DIGEST = bytes(32)

# GET, HEAD, OPTIONS, TRACE, LOCATE and bit 11
DEFAULT_METHODS_MASK = 2913

CODE_WIDTH = 2

_E = TypeVar("_E", bound="CodedEnum")


class CodedEnum(Enum):
    """
    Enumeration of fixed-width protocol codes.

    Members are declared as ``(code, label)`` pairs. The enum value is
    the integer code; the label is the text form used in headers.
    """

    def __new__(cls, code: int, label: str):
        obj = object.__new__(cls)
        obj._value_ = code
        obj.label = label
        return obj

    @property
    def code(self) -> int:
        return self.value

    @property
    def code_bytes(self) -> bytes:
        """The code as 2 big-endian bytes, as hashed by the engine."""
        return self.value.to_bytes(CODE_WIDTH, "big")

    @property
    def is_unset(self) -> bool:
        return self.value == 0

    @classmethod
    def from_label(cls: Type[_E], label: Optional[str]) -> Optional[_E]:
        """Look up a member by label. Unknown labels yield None."""
        if not label:
            return None
        return _labels(cls).get(label.strip().lower())

    @classmethod
    def from_code(cls: Type[_E], code: Union[int, bytes, str]) -> _E:
        """
        Look up a member by code.

        Accepts an int, 2 raw bytes or a ``0x``-prefixed hex string.

        Raises:
            ValueError: If the code is not in the table
        """
        if isinstance(code, bytes):
            code = int.from_bytes(code, "big")
        elif isinstance(code, str):
            code = int(code, 16)
        return cls(code)

    def __str__(self) -> str:
        return self.label


_label_cache: Dict[type, Dict[str, "CodedEnum"]] = {}


def _labels(cls: type) -> Dict[str, "CodedEnum"]:
    table = _label_cache.get(cls)
    if table is None:
        table = {member.label: member for member in cls if member.label}
        _label_cache[cls] = table
    return table


class MimeType(CodedEnum):
    UNSET = (0x0000, "")

    TEXT_PLAIN = (0x7470, "text/plain")
    TEXT_HTML = (0x7468, "text/html")
    TEXT_CSS = (0x7463, "text/css")
    TEXT_JAVASCRIPT = (0x7473, "text/javascript")
    TEXT_MARKDOWN = (0x746D, "text/markdown")
    TEXT_XML = (0x7478, "text/xml")
    TEXT_CSV = (0x7467, "text/csv")
    TEXT_CALENDAR = (0x7443, "text/calendar")

    APPLICATION_JSON = (0x786A, "application/json")
    APPLICATION_XML = (0x7878, "application/xml")
    APPLICATION_PDF = (0x7870, "application/pdf")
    APPLICATION_ZIP = (0x787A, "application/zip")
    APPLICATION_OCTET_STREAM = (0x786F, "application/octet-stream")
    APPLICATION_FORM_URLENCODED = (0x7877, "application/x-www-form-urlencoded")
    APPLICATION_MS_EXCEL = (0x7865, "application/vnd.ms-excel")
    APPLICATION_XLSX = (
        0x7866,
        "application/vnd.openxmlformats-officedocument.spreadsheetml.sheet",
    )

    IMAGE_PNG = (0x6970, "image/png")
    IMAGE_JPEG = (0x696A, "image/jpeg")
    IMAGE_GIF = (0x6967, "image/gif")
    IMAGE_WEBP = (0x6977, "image/webp")
    IMAGE_SVG = (0x6973, "image/svg+xml")
    IMAGE_BMP = (0x6962, "image/bmp")
    IMAGE_TIFF = (0x6974, "image/tiff")
    IMAGE_ICO = (0x6969, "image/x-icon")

    AUDIO_MPEG = (0x616D, "audio/mpeg")
    AUDIO_WAV = (0x6177, "audio/wav")
    AUDIO_OGG = (0x616F, "audio/ogg")

    VIDEO_MP4 = (0x766D, "video/mp4")
    VIDEO_WEBM = (0x7677, "video/webm")
    VIDEO_OGG = (0x766F, "video/ogg")

    MULTIPART_FORM_DATA = (0x7066, "multipart/form-data")
    MULTIPART_BYTERANGES = (0x7062, "multipart/byteranges")


class Charset(CodedEnum):
    UNSET = (0x0000, "")

    UTF_8 = (0x7508, "utf-8")
    UTF_16 = (0x7516, "utf-16")
    UTF_32 = (0x7532, "utf-32")
    UTF_32BE = (0x7533, "utf-32be")
    BASE64 = (0x6264, "base64")
    BASE64URL = (0x6265, "base64url")
    BASE58 = (0x6258, "base58")
    BASE32 = (0x6232, "base32")
    HEX = (0x6216, "hex")
    ASCII = (0x6173, "ascii")
    ISO_8859_1 = (0x6973, "iso-8859-1")
    LATIN1 = (0x6C31, "latin1")
    UTF_7 = (0x7507, "utf-7")
    UCS_2 = (0x7563, "ucs-2")


class Location(CodedEnum):
    UNSET = (0x0000, "")

    DATAPOINT_CHUNK = (0x0101, "datapoint/chunk")
    DATAPOINT_COLLECTION = (0x0102, "datapoint/collection")
    DATAPOINT_FILE = (0x0103, "datapoint/file")
    DATAPOINT_DIRECTORY = (0x0104, "datapoint/directory")
    DATAPOINT_LINK = (0x0105, "datapoint/link")
    HTTP_URL = (0x0201, "http")
    HTTP_SECURE_URL = (0x0202, "https")
    IPFS_FILE_ID = (0x0303, "ipfs/file")
    IPFS_DIRECTORY_ID = (0x0304, "ipfs/directory")
    ARWEAVE_FILE_ID = (0x0403, "arweave/file")
    ARWEAVE_DIRECTORY_ID = (0x0404, "arweave/directory")
    ORDINALS_CHUNK_ID = (0x0501, "ordinals/chunk")
    ORDINALS_COLLECTION_ID = (0x0502, "ordinals/collection")
    ORDINALS_FILE_ID = (0x0503, "ordinals/file")
    ORDINALS_DIRECTORY_ID = (0x0504, "ordinals/directory")
    ICP_LINK = (0x0605, "icp")


class Language(CodedEnum):
    UNSET = (0x0000, "")

    EN_US = (0x656E, "en-us")
    EN_GB = (0x6567, "en-gb")
    ZH_CN = (0x7A68, "zh-cn")
    ZH_TW = (0x7A74, "zh-tw")
    JA_JP = (0x6A61, "ja-jp")
    KO_KR = (0x6B6F, "ko-kr")
    FR_FR = (0x6672, "fr-fr")
    DE_DE = (0x6465, "de-de")
    ES_ES = (0x6573, "es-es")
    IT_IT = (0x6974, "it-it")
    PT_PT = (0x7074, "pt-pt")
    RU_RU = (0x7275, "ru-ru")


class Method(Enum):
    """
    Methods known to the permission bitmask.

    Each member carries the bit it occupies in ``HeaderInfo.methods``.
    Only the members in ``SUPPORTED_METHODS`` can be dispatched.
    """

    def __new__(cls, name: str, bit: int):
        obj = object.__new__(cls)
        obj._value_ = name
        obj.bit = bit
        return obj

    GET = ("GET", 0)
    POST = ("POST", 1)
    PUT = ("PUT", 2)
    DELETE = ("DELETE", 3)
    PATCH = ("PATCH", 4)
    HEAD = ("HEAD", 5)
    OPTIONS = ("OPTIONS", 6)
    CONNECT = ("CONNECT", 7)
    TRACE = ("TRACE", 8)
    LOCATE = ("LOCATE", 9)
    DEFINE = ("DEFINE", 10)

    @property
    def mask(self) -> int:
        return 1 << self.bit

    @property
    def is_supported(self) -> bool:
        return self in SUPPORTED_METHODS

    @classmethod
    def parse(cls, method: Union[str, "Method", None]) -> "Method":
        """
        Normalize a method given as enum member or string.

        None means GET. Strings are matched case-insensitively.

        Raises:
            InvalidMethodError: If the string names no known method
        """
        if method is None:
            return cls.GET
        if isinstance(method, cls):
            return method
        if isinstance(method, str):
            try:
                return cls(method.strip().upper())
            except ValueError:
                pass
        raise InvalidMethodError(method)

    def __str__(self) -> str:
        return self.value


SUPPORTED_METHODS = frozenset({
    Method.GET,
    Method.HEAD,
    Method.PUT,
    Method.PATCH,
    Method.DELETE,
    Method.LOCATE,
    Method.DEFINE,
})

READ_METHODS = frozenset({Method.GET, Method.HEAD, Method.LOCATE})


STATUS_PHRASES: Dict[int, str] = {
    # 1xx Informational
    100: "Continue",
    101: "Switching Protocols",
    102: "Processing",
    103: "Early Hints",

    # 2xx Success
    200: "OK",
    201: "Created",
    202: "Accepted",
    203: "Non-Authoritative Information",
    204: "No Content",
    205: "Reset Content",
    206: "Partial Content",
    207: "Multi-Status",
    208: "Already Reported",
    226: "IM Used",

    # 3xx Redirection
    300: "Multiple Choices",
    301: "Moved Permanently",
    302: "Found",
    303: "See Other",
    304: "Not Modified",
    305: "Use Proxy",
    307: "Temporary Redirect",
    308: "Permanent Redirect",
    309: "Off-Chain Redirect",

    # 4xx Client Error
    400: "Bad Request",
    401: "Unauthorized",
    402: "Payment Required",
    403: "Forbidden",
    404: "Not Found",
    405: "Method Not Allowed",
    406: "Not Acceptable",
    407: "Proxy Authentication Required",
    408: "Request Timeout",
    409: "Conflict",
    410: "Gone",
    411: "Length Required",
    412: "Precondition Failed",
    413: "Payload Too Large",
    414: "URI Too Long",
    415: "Unsupported Media Type",
    416: "Range Not Satisfiable",
    417: "Expectation Failed",
    418: "I'm a teapot",
    421: "Misdirected Request",
    422: "Unprocessable Entity",
    423: "Locked",
    424: "Failed Dependency",
    425: "Too Early",
    426: "Upgrade Required",
    428: "Precondition Required",
    429: "Too Many Requests",
    431: "Request Header Fields Too Large",
    451: "Unavailable For Legal Reasons",

    # 5xx Server Error
    500: "Internal Server Error",
    501: "Not Implemented",
    502: "Bad Gateway",
    503: "Service Unavailable",
    504: "Gateway Timeout",
    505: "HTTP Version Not Supported",
    506: "Variant Also Negotiates",
    507: "Insufficient Storage",
    508: "Loop Detected",
    510: "Not Extended",
    511: "Network Authentication Required",
}

UNKNOWN_STATUS = "Unknown Status"


def status_text(code: int) -> str:
    """Reason phrase for a status code, or ``Unknown Status``."""
    return STATUS_PHRASES.get(code, UNKNOWN_STATUS)
