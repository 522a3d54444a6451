import os
import random
import re
import time

from flask import current_app

from jotter.exceptions import StorageError
from jotter.extensions import store
from jotter.models import make_attachment
from jotter.storage.base import ID_ALPHABET

FALLBACK_NAME = 'renamed_file'


def sanitize_filename(filename):
    """替换路径/保留字符与空白，去掉首尾的下划线和点"""
    safe_name = re.sub(r'[\\/:*?"<>|]', '_', filename or '')
    safe_name = re.sub(r'\s+', '_', safe_name)
    safe_name = safe_name.strip('_').strip('.')
    return safe_name or FALLBACK_NAME


def make_unique_filename(filename):
    """<毫秒时间戳>_<5位随机>_<安全文件名>"""
    suffix = ''.join(random.choices(ID_ALPHABET, k=5))
    return f"{int(time.time() * 1000)}_{suffix}_{sanitize_filename(filename)}"


def has_upload(uploaded):
    """multipart 中是否带了真正的文件 (空文件名视为未上传)"""
    return uploaded is not None and bool(uploaded.filename)


def save_attachment(uploaded, owner_id):
    """
    将上传文件写入 UPLOAD_FOLDER/<owner_id>/
    返回: 附件元数据 dict (originalName, path, mimeType, size)
    """
    stored_name = make_unique_filename(uploaded.filename)
    user_dir = store.user_upload_dir(owner_id)
    save_path = os.path.join(user_dir, stored_name)
    try:
        os.makedirs(user_dir, exist_ok=True)
        with open(save_path, 'wb') as f:
            f.write(uploaded.content)
    except OSError as e:
        current_app.logger.error(f'save_attachment: 写入 {save_path} 失败 - {e}')
        raise StorageError('保存附件失败') from e

    current_app.logger.info(f'save_attachment: {uploaded.filename} -> {save_path} ({format_size(uploaded.size)})')
    return make_attachment(
        original_name=uploaded.filename,
        path=f"{owner_id}/{stored_name}",
        mime_type=uploaded.content_type,
        size=uploaded.size,
    )


def format_size(size):
    """将字节转换为易读格式 (KB, MB)"""
    power = 2**10
    n = 0
    power_labels = {0: '', 1: 'K', 2: 'M', 3: 'G', 4: 'T'}
    while size > power and n < 4:
        size /= power
        n += 1
    return f"{size:.1f} {power_labels[n]}B"


def update_attachment(current, uploaded, remove, owner_id):
    """
    更新记录时处理附件
    remove 为真时删除旧附件；上传了新文件时先保存新文件再删除旧文件
    返回: 新的附件元数据 (或 None)
    """
    new_attachment = save_attachment(uploaded, owner_id) if has_upload(uploaded) else None
    if current and (remove or new_attachment):
        store.remove_attachment(current)
        return new_attachment
    return new_attachment or current
