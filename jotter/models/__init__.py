from .auth import (
    Session, AnonymousUser, public_user,
    ROLES, ADMIN_ROLE, ANONYMOUS_ROLE, ANONYMOUS_DISPLAY_NAME, UNKNOWN_DISPLAY_NAME
)
from .content import (
    STATUS_DRAFT, STATUS_PUBLISHED, ARTICLE_STATUSES, DEFAULT_CATEGORY,
    make_attachment, article_category, is_published
)
