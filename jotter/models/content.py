# 文章状态
STATUS_DRAFT = 'draft'
STATUS_PUBLISHED = 'published'
ARTICLE_STATUSES = (STATUS_DRAFT, STATUS_PUBLISHED)

DEFAULT_CATEGORY = '未分类'


def make_attachment(original_name, path, mime_type, size):
    """嵌入在记事/文章中的附件元数据"""
    return {
        'originalName': original_name,
        'path': path,
        'mimeType': mime_type or 'application/octet-stream',
        'size': size,
    }


def article_category(article):
    return article.get('category') or DEFAULT_CATEGORY


def is_published(article):
    return article.get('status') == STATUS_PUBLISHED
