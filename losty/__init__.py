# losty/__init__.py

# =====================================================================================
# 1. 환경 변수 로드 (가장 먼저 실행)
# =====================================================================================
from dotenv import load_dotenv
load_dotenv()

# =====================================================================================
# 2. 모듈 임포트 (Module Imports)
# =====================================================================================
import os
import logging
from typing import Optional, Dict, Any
from flask import Flask, jsonify, current_app
from marshmallow import ValidationError
from flask_jwt_extended import JWTManager
import firebase_admin
from firebase_admin import credentials

# - 설정
from losty.core.config import config_by_name

# - API 블루프린트
from losty.api.auth.routes import auth_bp
from losty.api.uploads.routes import uploads_bp
from losty.api.users.routes import users_bp
from losty.api.posts.routes import posts_bp
from losty.api.claims.routes import claims_bp
from losty.api.conversations.routes import conversations_bp
from losty.api.notifications.routes import notifications_bp
from losty.api.bookmarks.routes import bookmarks_bp

# - 서비스 모듈
from losty.services.storage_service import StorageService
from losty.services.notification_service import NotificationService
from losty.api.auth.services import AuthService
from losty.api.users.services import UserService
from losty.api.posts.services import PostService
from losty.api.claims.services import ClaimService
from losty.api.conversations.services import ConversationService
from losty.api.bookmarks.services import BookmarkService

def _init_firebase(app: Flask):
    if firebase_admin._apps:
        return
    cred_path = app.config.get('FIREBASE_CREDENTIALS_PATH')
    if not cred_path or not os.path.exists(cred_path):
        raise FileNotFoundError(f"Firebase 인증 파일을 찾을 수 없습니다: {cred_path}")
    cred = credentials.Certificate(cred_path)
    firebase_admin.initialize_app(cred, {
        'storageBucket': app.config['FIREBASE_STORAGE_BUCKET']
    })

def _build_services(app: Flask) -> Dict[str, Any]:
    """
    서비스 인스턴스를 의존 순서대로 생성합니다.
    공용 서비스(storage, notifications) -> users -> posts -> 나머지 도메인
    """
    services: Dict[str, Any] = {}

    try:
        storage_instance = StorageService()
        storage_instance.init_app(app)
        services['storage'] = storage_instance
        logging.info("Storage service initialized successfully")
    except Exception as e:
        logging.error(f"Failed to initialize storage service: {e}")
        raise

    services['notifications'] = NotificationService()
    services['users'] = UserService(storage_service=services['storage'])
    services['posts'] = PostService(
        storage_service=services['storage'],
        user_service=services['users']
    )
    services['claims'] = ClaimService(
        post_service=services['posts'],
        user_service=services['users'],
        notification_service=services['notifications']
    )
    services['conversations'] = ConversationService(
        post_service=services['posts'],
        user_service=services['users']
    )
    services['bookmarks'] = BookmarkService()

    # - 인증 서비스 (앱 설정 필요)
    auth_instance = AuthService()
    auth_instance.init_app(app)
    services['auth'] = auth_instance
    return services

def create_app(config_name: Optional[str] = None, services: Optional[Dict[str, Any]] = None):
    """
    Flask 애플리케이션 팩토리 함수.

    :param config_name: 'development' | 'testing' | 'production'. 없으면 FLASK_ENV 사용
    :param services: 미리 만든 서비스 딕셔너리. 주어지면 Firebase 초기화를 건너뜁니다. (테스트용)
    """
    # =====================================================================================
    # 3. Flask 앱 생성 및 기본 설정
    # =====================================================================================
    config_name = config_name or os.getenv('FLASK_ENV', 'development')

    app = Flask(__name__)
    app.config.from_object(config_by_name[config_name])
    app.json.ensure_ascii = False

    # =====================================================================================
    # 4. 확장 기능 및 외부 서비스 초기화
    # =====================================================================================
    jwt = JWTManager(app)

    @jwt.token_in_blocklist_loader
    def check_if_token_revoked(jwt_header, jwt_payload):
        return current_app.services['auth'].is_token_revoked(jwt_payload)

    # =====================================================================================
    # 5. 서비스 인스턴스 생성 및 'app.services'에 저장 (의존성 주입)
    # =====================================================================================
    if services is None:
        _init_firebase(app)
        services = _build_services(app)
    app.services = services

    # =====================================================================================
    # 6. 블루프린트 등록
    # =====================================================================================
    app.register_blueprint(auth_bp, url_prefix='/api/auth')
    app.register_blueprint(uploads_bp, url_prefix='/api/uploads')
    app.register_blueprint(users_bp, url_prefix='/api/users')
    app.register_blueprint(posts_bp, url_prefix='/api/posts')
    app.register_blueprint(claims_bp, url_prefix='/api/claims')
    app.register_blueprint(conversations_bp, url_prefix='/api/conversations')
    app.register_blueprint(notifications_bp, url_prefix='/api/notifications')
    app.register_blueprint(bookmarks_bp, url_prefix='/api/bookmarks')

    # =====================================================================================
    # 7. 전역 에러 핸들러 설정
    # =====================================================================================
    @app.errorhandler(ValidationError)
    def handle_marshmallow_validation(err):
        response = {"error_code": "VALIDATION_ERROR", "details": err.messages}
        return jsonify(response), 400

    @app.errorhandler(Exception)
    def handle_generic_exception(err):
        # 다른 핸들러에서 처리되지 않은 모든 예외를 여기서 처리
        logging.error(f"An unhandled exception occurred: {err}", exc_info=True)
        response = {"error_code": "INTERNAL_SERVER_ERROR", "message": "서버 내부에서 예상치 못한 오류가 발생했습니다."}
        return jsonify(response), 500

    # =====================================================================================
    # 8. 로깅 및 앱 반환
    # =====================================================================================
    if not app.debug:
        logging.basicConfig(level=logging.INFO, format='%(asctime)s %(levelname)s: %(message)s [in %(pathname)s:%(lineno)d]')

    logging.info(f"Flask app created for '{config_name}' environment.")

    return app
