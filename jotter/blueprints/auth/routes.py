from flask import render_template, redirect, request, url_for, flash, jsonify, current_app
from flask_login import current_user

from jotter.blueprints.auth import auth_bp
from jotter.blueprints.auth.forms import LoginForm, RegisterForm
from jotter.exceptions import AuthenticationError, ConflictError, ValidationError
from jotter.extensions import csrf, sessions
from jotter.services.user_service import UserService
from jotter.utils.audit import log_action
from jotter.utils.request_body import get_body


def set_session_cookie(response, token):
    """sessionId Cookie: HttpOnly, SameSite=Lax, 与会话同为 24 小时"""
    response.set_cookie(
        current_app.config['SESSION_TOKEN_COOKIE'],
        token,
        max_age=int(sessions.lifetime.total_seconds()),
        path='/',
        httponly=True,
        samesite='Lax',
    )
    return response


@auth_bp.route('/login', methods=['GET', 'POST'])
def login():
    # 如果已登录，直接跳到首页
    if current_user.is_authenticated:
        return redirect(url_for('main.index'))

    form = LoginForm()
    if request.method == 'GET':
        return render_template('auth/login.html', form=form)

    if not form.validate_on_submit():
        return render_template('auth/login.html', form=form,
                               error_message='用户名不能为空。'), 400
    try:
        token, user = UserService.login(form.username.data, form.password.data)
    except (AuthenticationError, ValidationError) as e:
        return render_template('auth/login.html', form=form, error_message=e.message), e.code

    flash(f"欢迎回来，{user['username']}。", 'success')
    return set_session_cookie(redirect(url_for('main.index')), token)


@auth_bp.route('/logout', methods=['POST'])
def logout():
    cookie_name = current_app.config['SESSION_TOKEN_COOKIE']
    if current_user.is_authenticated:
        log_action('auth', 'logout', {'username': current_user.username})
    sessions.logout(request.cookies.get(cookie_name))
    response = redirect(url_for('auth.login'))
    response.delete_cookie(cookie_name, path='/')
    return response


@auth_bp.route('/register', methods=['GET', 'POST'])
def register():
    """
    注册页面
    第一个注册的用户自动成为管理员
    """
    if current_user.is_authenticated:
        return redirect(url_for('main.index'))

    form = RegisterForm()
    if request.method == 'GET':
        return render_template('auth/register.html', form=form)

    if not form.validate_on_submit():
        return render_template('auth/register.html', form=form), 400
    try:
        user = UserService.register(form.username.data, form.password.data, form.confirm_password.data)
    except (ConflictError, ValidationError) as e:
        return render_template('auth/register.html', form=form, error_message=e.message), e.code

    flash(f"注册成功，{user['username']}，请登录。", 'success')
    return redirect(url_for('auth.login'))


@auth_bp.route('/api/users/register', methods=['POST'])
@csrf.exempt
def api_register():
    body = get_body()
    user = UserService.register(body.text('username'), body.get('password'), body.get('confirmPassword'))
    return jsonify(user), 201
