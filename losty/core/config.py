# losty/core/config.py

import os # 환경 변수를 읽기 위해 사용합니다.
from datetime import timedelta

class Config:
    """모든 환경 설정의 기반이 되는 공통 설정 클래스입니다."""
    # JWT 토큰 서명 키. 토큰 위변조 방지에 사용됩니다.
    JWT_SECRET_KEY = os.getenv('JWT_SECRET_KEY')
    JWT_ACCESS_TOKEN_EXPIRES = timedelta(hours=1)
    JWT_REFRESH_TOKEN_EXPIRES = timedelta(days=14)

    FIREBASE_STORAGE_BUCKET = os.getenv('FIREBASE_STORAGE_BUCKET')
    # Identity Toolkit REST API(비밀번호 로그인, 인증 메일 발송)에 필요한 웹 API 키
    FIREBASE_WEB_API_KEY = os.getenv('FIREBASE_WEB_API_KEY')

    # 실시간 스트림(SSE)에서 변경이 없을 때 keep-alive 주석을 보내는 간격(초)
    LIVE_STREAM_HEARTBEAT_SECONDS = int(os.getenv('LIVE_STREAM_HEARTBEAT_SECONDS', 15))

class DevelopmentConfig(Config):
    """개발 환경을 위한 설정 클래스입니다."""
    DEBUG = True
    FIREBASE_CREDENTIALS_PATH = os.getenv('DEV_FIREBASE_CREDENTIALS_PATH')

class TestingConfig(Config):
    """테스트 환경을 위한 설정 클래스입니다."""
    TESTING = True
    DEBUG = False
    FIREBASE_CREDENTIALS_PATH = os.getenv('TEST_FIREBASE_CREDENTIALS_PATH')
    JWT_SECRET_KEY = os.getenv('JWT_SECRET_KEY', 'testing-secret-key-for-losty-backend')
    FIREBASE_STORAGE_BUCKET = os.getenv('FIREBASE_STORAGE_BUCKET', 'losty-test.appspot.com')
    FIREBASE_WEB_API_KEY = os.getenv('FIREBASE_WEB_API_KEY', 'testing-api-key')
    LIVE_STREAM_HEARTBEAT_SECONDS = 1

class ProductionConfig(Config):
    """운영 환경을 위한 설정 클래스입니다."""
    DEBUG = False
    FIREBASE_CREDENTIALS_PATH = os.getenv('FIREBASE_CREDENTIALS_PATH')

# FLASK_ENV 값에 따라 create_app에서 설정 클래스를 선택합니다.
config_by_name = dict(
    development=DevelopmentConfig,
    testing=TestingConfig,
    production=ProductionConfig
)
