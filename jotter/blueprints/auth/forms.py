from flask_wtf import FlaskForm
from wtforms import StringField, PasswordField, SubmitField
from wtforms.validators import DataRequired, EqualTo, Optional

from jotter.utils.validators import validate_username


class LoginForm(FlaskForm):
    """用户登录表单 (普通用户允许空密码)"""
    username = StringField('用户名', validators=[
        DataRequired(message="请输入用户名")
    ])
    password = PasswordField('密码', validators=[Optional()])
    submit = SubmitField('登录')


class RegisterForm(FlaskForm):
    """用户注册表单"""
    username = StringField('用户名', validators=[
        DataRequired(message="请输入用户名"), validate_username
    ])
    password = PasswordField('密码', validators=[
        DataRequired(message="请输入密码")
    ])
    confirm_password = PasswordField('确认密码', validators=[
        DataRequired(message="请再次输入密码"), EqualTo('password', message='两次输入的密码不一致')
    ])
    submit = SubmitField('注册')
