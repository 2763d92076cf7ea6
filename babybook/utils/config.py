"""
配置管理模块
管理应用的所有配置信息，包括服务器配置、字体配置、图片下载配置等
"""

from pydantic_settings import BaseSettings
from functools import lru_cache


class Settings(BaseSettings):
    """应用配置类"""

    # 服务器配置
    host: str = "0.0.0.0"
    port: int = 8000

    # 日志配置（log_file 为空时只输出到控制台）
    log_level: str = "INFO"
    log_file: str = "logs/app.log"

    # PDF 配置
    font_path: str = "fonts/NotoSansJP-Regular.ttf"
    timezone: str = "Asia/Tokyo"

    # 图片下载配置（超时单位: 秒）
    photo_fetch_timeout: float = 15.0
    photo_fetch_concurrency: int = 8

    # 应用配置
    app_name: str = "Baby Diary Booklet"
    app_version: str = "1.0.0"
    debug: bool = False

    class Config:
        env_file = ".env"
        env_file_encoding = "utf-8"


@lru_cache()
def get_settings() -> Settings:
    """
    获取配置实例（单例模式）
    使用lru_cache确保只创建一个配置实例
    """
    return Settings()


# 导出配置实例
settings = get_settings()
