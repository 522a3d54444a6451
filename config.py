import os
from datetime import timedelta
from dotenv import load_dotenv

# 加载 .env 环境变量
load_dotenv()
basedir = os.path.abspath(os.path.dirname(__file__))


def _env_flag(name, default):
    return os.environ.get(name, default).lower() in ('1', 'true', 'yes')


class Config:
    """基础配置类"""
    SECRET_KEY = os.environ.get('SECRET_KEY') or 'hard-to-guess-string'

    # JSON 数据文件目录 (users / notes / articles / comments / settings)
    DATA_DIR = os.environ.get('JOTTER_DATA_DIR') or os.path.join(basedir, 'data')

    # 附件上传配置 (每个用户一个子目录)
    UPLOAD_FOLDER = os.environ.get('JOTTER_UPLOAD_FOLDER') or os.path.join(basedir, 'uploads')
    MAX_CONTENT_LENGTH = 16 * 1024 * 1024  # 限制最大上传 16MB

    # 会话配置：令牌保存在 HttpOnly Cookie 中，固定 24 小时有效期
    SESSION_TOKEN_COOKIE = 'sessionId'
    SESSION_LIFETIME = timedelta(hours=24)
    SESSION_SWEEP_ENABLED = True
    SESSION_SWEEP_INTERVAL = timedelta(hours=1)

    # 业务配置
    ALLOW_ANONYMOUS_COMMENTS = _env_flag('ALLOW_ANONYMOUS_COMMENTS', 'true')
    DEFAULT_USER_ROLE = os.environ.get('DEFAULT_USER_ROLE', 'member')
    TRAFFIC_LOG_ENABLED = _env_flag('TRAFFIC_LOG_ENABLED', 'true')

    # 缓存配置 (站点设置缓存)
    CACHE_TYPE = "SimpleCache"
    CACHE_DEFAULT_TIMEOUT = 300
    # 站点设置单独使用较短的缓存时间 (秒)
    SETTINGS_CACHE_TIMEOUT = 30

    @staticmethod
    def init_app(app):
        # 确保数据目录与上传目录存在
        for folder in (app.config['DATA_DIR'], app.config['UPLOAD_FOLDER']):
            if not os.path.exists(folder):
                os.makedirs(folder)


class DevelopmentConfig(Config):
    """开发环境配置"""
    DEBUG = True


class ProductionConfig(Config):
    """生产环境配置"""
    DEBUG = False

    # 安全设置
    SESSION_COOKIE_SECURE = False  # 由反向代理处理 HTTPS
    SESSION_COOKIE_HTTPONLY = True
    SESSION_COOKIE_SAMESITE = 'Lax'

    @classmethod
    def init_app(cls, app):
        Config.init_app(app)


class TestingConfig(Config):
    TESTING = True
    WTF_CSRF_ENABLED = False
    CACHE_TYPE = "NullCache"
    SESSION_SWEEP_ENABLED = False
    TRAFFIC_LOG_ENABLED = False
    ALLOW_ANONYMOUS_COMMENTS = True


config = {
    'development': DevelopmentConfig,
    'production': ProductionConfig,
    'testing': TestingConfig,
    'default': DevelopmentConfig
}
