import os
from jotter import create_app
from jotter.extensions import store, sessions

# 从环境变量获取配置模式
# 支持 FLASK_ENV 或 FLASK_CONFIG
config_name = os.getenv('FLASK_ENV') or os.getenv('FLASK_CONFIG') or 'default'
if config_name in ('development', 'dev'):
    config_name = 'development'

app = create_app(config_name)


@app.shell_context_processor
def make_shell_context():
    """
    配置 Flask Shell 上下文。
    'flask shell' 中可直接使用 store 和 sessions。
    """
    return dict(app=app, store=store, sessions=sessions)


if __name__ == '__main__':
    print("-------------------------------------------------------")
    print("   JOTTER 启动中                                        ")
    print("   Target: Localhost:5000                              ")
    print("-------------------------------------------------------")
    app.run(host='0.0.0.0', port=5000)
