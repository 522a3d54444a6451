"""站点设置服务 (带缓存)"""
from flask import current_app

from jotter.extensions import cache, store

SETTINGS_CACHE_KEY = 'site_settings'


class SettingsService:

    @staticmethod
    def get_settings():
        settings = cache.get(SETTINGS_CACHE_KEY)
        if settings is None:
            settings = store.get_settings()
            # flask settings 不会清除运行中服务的缓存，新值最多延迟 SETTINGS_CACHE_TIMEOUT 秒生效
            cache.set(SETTINGS_CACHE_KEY, settings, timeout=current_app.config.get('SETTINGS_CACHE_TIMEOUT'))
        return settings

    @staticmethod
    def articles_per_page():
        return SettingsService.get_settings()['articlesPerPage']

    @staticmethod
    def update_settings(changes):
        settings = store.save_settings(changes)
        cache.delete(SETTINGS_CACHE_KEY)
        return settings
