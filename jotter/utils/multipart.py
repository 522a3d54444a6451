"""
multipart/form-data 解析器
按 boundary 切分原始请求体，得到普通字段与上传文件
"""
import logging
import re
from dataclasses import dataclass, field
from urllib.parse import unquote

from werkzeug.http import parse_options_header

logger = logging.getLogger(__name__)

DEFAULT_FILENAME = 'unknown_file.dat'
DECODE_ERROR_FILENAME = 'fallback_filename_decode_error.dat'

_NAME_RE = re.compile(r'(?:^|;)\s*name="([^"]+)"', re.IGNORECASE)
_FILENAME_STAR_RE = re.compile(r"filename\*\s*=\s*([\w!#$%&+^`{}~-]+)'[^']*'([^;\s]+)", re.IGNORECASE)
_FILENAME_RE = re.compile(r'filename="((?:[^"\\]|\\.)*)"', re.IGNORECASE)
_HAS_FILENAME_RE = re.compile(r'(?:^|;)\s*filename\*?\s*=', re.IGNORECASE)
_CONTENT_TYPE_RE = re.compile(r'^content-type:\s*(.+)$', re.IGNORECASE | re.MULTILINE)


@dataclass
class UploadedFile:
    filename: str
    content_type: str
    content: bytes

    @property
    def size(self):
        return len(self.content)


@dataclass
class MultipartData:
    fields: dict = field(default_factory=dict)
    files: dict = field(default_factory=dict)


def extract_boundary(content_type):
    _, options = parse_options_header(content_type or '')
    return options.get('boundary')


def parse_multipart(raw, content_type):
    """
    解析 multipart 请求体
    :param raw: 原始请求体 bytes
    :param content_type: Content-Type 请求头 (需包含 boundary)
    :return: MultipartData(fields={name: str}, files={name: UploadedFile})
    格式错误的分段直接跳过，不会抛出异常
    """
    result = MultipartData()
    boundary = extract_boundary(content_type)
    if not boundary:
        logger.warning('解析 multipart/form-data 失败：找不到 boundary')
        return result

    delimiter = b'--' + boundary.encode('latin-1')
    index = raw.find(delimiter)
    while index != -1:
        next_index = raw.find(delimiter, index + len(delimiter))
        if next_index == -1:
            break
        part = raw[index + len(delimiter):next_index]
        if part.startswith(b'\r\n'):
            part = part[2:]
        if part.endswith(b'\r\n'):
            part = part[:-2]
        if part:
            _parse_part(part, result)
        index = next_index
    return result


def _parse_part(part, result):
    separator = part.find(b'\r\n\r\n')
    if separator == -1:
        return
    header_text = part[:separator].decode('utf-8', errors='replace')
    body = part[separator + 4:]

    disposition = None
    for line in header_text.split('\r\n'):
        if line.lower().startswith('content-disposition:'):
            disposition = line.split(':', 1)[1].strip()
            break
    if disposition is None:
        return

    name_match = _NAME_RE.search(disposition)
    if not name_match:
        return
    field_name = name_match.group(1)

    if _HAS_FILENAME_RE.search(disposition):
        type_match = _CONTENT_TYPE_RE.search(header_text)
        result.files[field_name] = UploadedFile(
            filename=_extract_filename(disposition),
            content_type=type_match.group(1).strip() if type_match else 'application/octet-stream',
            content=bytes(body),
        )
    else:
        result.fields[field_name] = body.decode('utf-8', errors='replace')


def _extract_filename(disposition):
    """优先使用 RFC 5987 的 filename*，其次是普通 filename"""
    star = _FILENAME_STAR_RE.search(disposition)
    if star:
        charset, encoded = star.groups()
        try:
            return unquote(encoded, encoding=charset, errors='strict')
        except (LookupError, UnicodeDecodeError) as e:
            logger.warning('解码 filename* 属性 "%s" 失败: %s', encoded, e)
            return DECODE_ERROR_FILENAME

    plain = _FILENAME_RE.search(disposition)
    if plain:
        name = plain.group(1).replace('\\"', '"').replace('\\\\', '\\')
        try:
            # 浏览器可能对文件名做了百分号编码
            return unquote(name, errors='strict')
        except UnicodeDecodeError:
            return name
    return DEFAULT_FILENAME
