from flask import Blueprint

# 页面路由与 /api 路由都在这里注册，不设置 url_prefix
uploads_bp = Blueprint('uploads', __name__)

from . import routes
