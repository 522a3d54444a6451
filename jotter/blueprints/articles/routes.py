from flask import render_template, request, jsonify
from flask_login import current_user

from jotter.blueprints.articles import articles_bp
from jotter.exceptions import PermissionDenied
from jotter.extensions import csrf
from jotter.services.article_service import ArticleService
from jotter.services.comment_service import CommentService
from jotter.utils.file_helper import format_size
from jotter.utils.permissions import can_comment, can_create_article, can_modify_article
from jotter.utils.request_body import get_body


# ============== 页面 ==============

@articles_bp.route('/articles/new')
def new_article():
    if not can_create_article(current_user):
        raise PermissionDenied('您没有权限发表文章。')
    return render_template('articles/form.html', article=None, page_title='发表新文章')


@articles_bp.route('/articles/<article_id>/edit')
def edit_article(article_id):
    article = ArticleService.get_article_for_edit(current_user, article_id)
    return render_template('articles/form.html', article=article, page_title='编辑文章')


@articles_bp.route('/articles/<article_id>')
def view_article(article_id):
    """文章详情页 (未发布文章仅作者和管理员可见)"""
    article = ArticleService.get_article(current_user, article_id)
    attachment = article.get('attachment')
    return render_template(
        'articles/view.html',
        article=article,
        owner_username=ArticleService.owner_username(article),
        attachment_size=format_size(attachment['size']) if attachment else None,
        can_edit=can_modify_article(current_user, article),
        can_comment=can_comment(current_user),
    )


# ============== 文章 API ==============

@articles_bp.route('/api/articles', methods=['GET'])
def api_list():
    """
    文章列表
    查询参数: search, category ('all' 表示不过滤), page
    """
    result = ArticleService.list_articles(
        current_user,
        search=request.args.get('search'),
        category=request.args.get('category'),
        page=request.args.get('page', 1, type=int),
    )
    return jsonify(result)


@articles_bp.route('/api/articles', methods=['POST'])
@csrf.exempt
def api_create():
    article = ArticleService.create_article(current_user, get_body())
    return jsonify(article), 201


@articles_bp.route('/api/articles/<article_id>', methods=['GET'])
def api_get(article_id):
    return jsonify(ArticleService.get_article(current_user, article_id))


@articles_bp.route('/api/articles/<article_id>', methods=['PUT'])
@csrf.exempt
def api_update(article_id):
    return jsonify(ArticleService.update_article(current_user, article_id, get_body()))


@articles_bp.route('/api/articles/<article_id>', methods=['DELETE'])
@csrf.exempt
def api_delete(article_id):
    ArticleService.delete_article(current_user, article_id)
    return jsonify({'message': f'文章 (ID: {article_id}) 已成功删除。'})


# ============== 评论 API ==============

@articles_bp.route('/api/articles/<article_id>/comments', methods=['GET'])
def api_list_comments(article_id):
    return jsonify(CommentService.list_comments(current_user, article_id))


@articles_bp.route('/api/articles/<article_id>/comments', methods=['POST'])
@csrf.exempt
def api_create_comment(article_id):
    comment = CommentService.create_comment(current_user, article_id, get_body())
    return jsonify(comment), 201


@articles_bp.route('/api/comments/<comment_id>', methods=['DELETE'])
@csrf.exempt
def api_delete_comment(comment_id):
    CommentService.delete_comment(current_user, comment_id)
    return jsonify({'message': f'评论 (ID: {comment_id}) 已成功删除。'})
