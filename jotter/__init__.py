import logging
import colorlog
from flask import Flask, flash, jsonify, redirect, render_template, request, url_for
from werkzeug.exceptions import HTTPException

from config import config
from jotter.exceptions import JotterException
from jotter.extensions import login_manager, cache, csrf, store, sessions, traffic
from jotter import gateway

from jotter import commands


def create_app(config_name='default', test_config=None):
    """Jotter 应用工厂函数"""
    app = Flask(__name__)

    # 1. 加载配置 (测试配置覆盖在最后)
    app.config.from_object(config[config_name])
    if test_config:
        app.config.update(test_config)
    config[config_name].init_app(app)

    # 2. 初始化扩展
    store.init_app(app)
    sessions.init_app(app)
    traffic.init_app(app)
    login_manager.init_app(app)
    cache.init_app(app)
    csrf.init_app(app)

    # 3. 配置日志
    configure_logging(app)

    # 4. 请求网关 (登录与角色检查)
    gateway.init_app(app)

    # 5. 注册蓝图 (Blueprints)
    register_blueprints(app)

    # 6. 注册全局错误处理
    register_error_handlers(app)

    # 7. 流量日志
    register_traffic_log(app)

    # 8. 注册 CLI 命令
    register_commands(app)

    return app


def register_blueprints(app):
    """注册所有业务模块蓝图 (页面与 /api 路由同在一个蓝图内)"""
    # 首页蓝图
    from jotter.blueprints.main import main_bp
    app.register_blueprint(main_bp)

    # 认证蓝图
    from jotter.blueprints.auth import auth_bp
    app.register_blueprint(auth_bp)

    # 记事蓝图
    from jotter.blueprints.notes import notes_bp
    app.register_blueprint(notes_bp)

    # 文章与评论蓝图
    from jotter.blueprints.articles import articles_bp
    app.register_blueprint(articles_bp)

    # 用户管理蓝图
    from jotter.blueprints.admin import admin_bp
    app.register_blueprint(admin_bp)

    # 附件下载蓝图
    from jotter.blueprints.uploads import uploads_bp
    app.register_blueprint(uploads_bp)


def register_error_handlers(app):

    @app.errorhandler(JotterException)
    def handle_jotter_exception(e):
        if gateway.is_api_path(request.path):
            return jsonify(e.to_dict()), e.code
        if e.code == 401:
            return redirect(url_for('auth.login'))
        if e.code in (403, 404):
            return render_template(f'errors/{e.code}.html', message=e.message), e.code
        if e.code >= 500:
            app.logger.error(f'{request.method} {request.path} 失败: {e.message}')
            return render_template('errors/500.html', message=e.message), e.code
        # 表单提交的校验错误：提示后返回上一页
        flash(e.message, 'danger')
        return redirect(request.referrer or url_for('main.index'))

    @app.errorhandler(HTTPException)
    def handle_http_exception(e):
        if gateway.is_api_path(request.path):
            return jsonify({'message': e.description, 'code': e.code, 'success': False}), e.code
        if e.code in (403, 404, 500):
            return render_template(f'errors/{e.code}.html', message=e.description), e.code
        return e


def register_traffic_log(app):

    @app.after_request
    def record_traffic(response):
        if not request.path.startswith('/static/'):
            traffic.record(request)
        return response


def register_commands(app):
    """注册 Flask CLI 命令"""
    app.cli.add_command(commands.status)
    app.cli.add_command(commands.init_admin)
    app.cli.add_command(commands.settings)
    app.cli.add_command(commands.forge)


def configure_logging(app):
    """配置彩色控制台日志，提升开发体验"""
    if app.debug:
        handler = logging.StreamHandler()
        handler.setLevel(logging.INFO)

        formatter = colorlog.ColoredFormatter(
            "%(log_color)s[%(asctime)s] %(levelname)-8s%(reset)s %(cyan)s%(name)s%(reset)s %(blue)s%(message)s",
            datefmt="%H:%M:%S",
            reset=True,
            log_colors={
                'DEBUG':    'cyan',
                'INFO':     'green',
                'WARNING':  'yellow',
                'ERROR':    'red',
                'CRITICAL': 'red,bg_white',
            },
            style='%'
        )
        handler.setFormatter(formatter)
        app.logger.addHandler(handler)
        app.logger.setLevel(logging.INFO)
