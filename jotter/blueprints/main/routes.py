from flask import render_template
from flask_login import current_user

from jotter.blueprints.main import main_bp
from jotter.utils.permissions import can_create_article


@main_bp.route('/')
def index():
    """首页 (文章列表、搜索与分页由前端调用 /api/articles)"""
    return render_template('main/index.html', can_create=can_create_article(current_user))
