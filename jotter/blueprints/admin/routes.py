"""
用户管理模块 - 账号的创建、重置密码、修改角色、删除，以及访问统计
网关已限制为管理员访问，视图上的 admin_required 作为第二道检查
"""
from flask import render_template, redirect, url_for, jsonify
from flask_login import current_user

from jotter.blueprints.admin import admin_bp
from jotter.extensions import csrf, traffic
from jotter.services.user_service import UserService
from jotter.utils.permissions import admin_required
from jotter.utils.request_body import get_body


@admin_bp.route('/admin')
@admin_required
def index():
    return redirect(url_for('admin.users'))


@admin_bp.route('/admin/users')
@admin_required
def users():
    """用户管理页面"""
    return render_template('admin/users.html', users=UserService.list_users())


@admin_bp.route('/api/admin/users', methods=['GET'])
@admin_required
def api_list_users():
    return jsonify(UserService.list_users())


@admin_bp.route('/api/admin/users', methods=['POST'])
@csrf.exempt
@admin_required
def api_create_user():
    body = get_body()
    user = UserService.create_user(body.text('username'), body.get('password'), body.text('role') or 'user')
    return jsonify(user), 201


@admin_bp.route('/api/admin/users/<user_id>/password', methods=['PUT'])
@csrf.exempt
@admin_required
def api_reset_password(user_id):
    user = UserService.reset_password(user_id, get_body().get('password'))
    return jsonify({'message': f"用户 {user['username']} 的密码已重置。"})


@admin_bp.route('/api/admin/users/<user_id>/role', methods=['PUT'])
@csrf.exempt
@admin_required
def api_change_role(user_id):
    return jsonify(UserService.change_role(user_id, get_body().text('role')))


@admin_bp.route('/api/admin/users/<user_id>', methods=['DELETE'])
@csrf.exempt
@admin_required
def api_delete_user(user_id):
    user = UserService.delete_user(user_id, current_user)
    return jsonify({'message': f"用户 {user['username']} (ID: {user_id}) 已成功删除。"})


@admin_bp.route('/api/admin/stats', methods=['GET'])
@admin_required
def api_stats():
    """访问统计：页面、日期、来源 各取前 15"""
    return jsonify(traffic.detailed_stats())
