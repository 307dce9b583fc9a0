# losty/api/auth/routes.py

import logging
import jwt
from flask import Blueprint, request, jsonify, current_app
from flask_jwt_extended import (
    create_access_token,
    create_refresh_token,
    jwt_required,
    get_jwt_identity
)
from marshmallow import ValidationError

from losty.api.auth.schemas import (
    RegisterSchema, LoginSchema, GoogleSignInSchema, PasswordResetSchema, LogoutRequestSchema
)
from losty.api.auth.services import AuthenticationError
from losty.services.identity_toolkit_service import IdentityToolkitError

auth_bp = Blueprint('auth_bp', __name__)

def _issue_tokens(user_id: str) -> dict:
    return {
        "access_token": create_access_token(identity=user_id),
        "refresh_token": create_refresh_token(identity=user_id),
        "user_id": user_id
    }

@auth_bp.route('/register', methods=['POST'])
def register():
    """
    이메일/비밀번호 회원가입.
    - 가입 후 인증 메일이 발송되며, 인증 전에는 로그인할 수 없습니다.
    """
    auth_service = current_app.services['auth']
    try:
        data = RegisterSchema().load(request.get_json() or {})
        user, verification_sent = auth_service.register_user(**data)
        return jsonify({
            "user_id": user.uid,
            "email": user.email,
            "username": user.username,
            "verification_email_sent": verification_sent
        }), 201
    except ValidationError as err:
        return jsonify({"error_code": "VALIDATION_ERROR", "details": err.messages}), 400
    except ValueError as e: # 이미 가입된 이메일
        return jsonify({"error_code": "EMAIL_ALREADY_EXISTS", "message": str(e)}), 409
    except Exception as e:
        logging.error(f"회원가입 중 예외 발생: {e}", exc_info=True)
        return jsonify({"error_code": "REGISTRATION_FAILED", "message": "An unknown error occurred"}), 500


@auth_bp.route('/login', methods=['POST'])
def login():
    """이메일 또는 전화번호 + 비밀번호 로그인. 성공 시 JWT를 발급합니다."""
    auth_service = current_app.services['auth']
    try:
        data = LoginSchema().load(request.get_json() or {})
        user_id = auth_service.login_user(data['credential'], data['password'])
        return jsonify(_issue_tokens(user_id)), 200
    except ValidationError as err:
        return jsonify({"error_code": "VALIDATION_ERROR", "details": err.messages}), 400
    except AuthenticationError as e:
        return jsonify({"error_code": "AUTHENTICATION_FAILED", "message": str(e)}), 401
    except Exception as e:
        logging.error(f"로그인 중 예외 발생: {e}", exc_info=True)
        return jsonify({"error_code": "LOGIN_FAILED", "message": "An unknown error occurred"}), 500


@auth_bp.route('/google', methods=['POST'])
def google_sign_in():
    """Google ID 토큰으로 로그인(최초 로그인 시 가입)합니다."""
    auth_service = current_app.services['auth']
    try:
        data = GoogleSignInSchema().load(request.get_json() or {})
        user_id, is_new_user = auth_service.sign_in_with_google(data['id_token'])
        return jsonify({**_issue_tokens(user_id), "is_new_user": is_new_user}), 200
    except ValidationError as err:
        return jsonify({"error_code": "VALIDATION_ERROR", "details": err.messages}), 400
    except AuthenticationError as e:
        return jsonify({"error_code": "AUTHENTICATION_FAILED", "message": str(e)}), 401
    except Exception as e:
        logging.error(f"Google 로그인 중 예외 발생: {e}", exc_info=True)
        return jsonify({"error_code": "GOOGLE_SIGN_IN_FAILED", "message": "Google Sign-In failed"}), 500


@auth_bp.route('/password-reset', methods=['POST'])
def send_password_reset():
    """비밀번호 재설정 메일을 발송합니다."""
    auth_service = current_app.services['auth']
    try:
        data = PasswordResetSchema().load(request.get_json() or {})
        auth_service.send_password_reset(data['email'])
        return jsonify({"message": "Password reset email sent."}), 200
    except ValidationError as err:
        return jsonify({"error_code": "VALIDATION_ERROR", "details": err.messages}), 400
    except IdentityToolkitError as e:
        return jsonify({"error_code": "PASSWORD_RESET_FAILED", "message": str(e)}), 400
    except Exception as e:
        logging.error(f"비밀번호 재설정 메일 발송 실패: {e}", exc_info=True)
        return jsonify({"error_code": "PASSWORD_RESET_FAILED", "message": "Failed to send reset email"}), 500


# --- 토큰 재발급 엔드포인트 ---
@auth_bp.route('/token/refresh', methods=['POST'])
@jwt_required(refresh=True) # Refresh Token만 허용
def refresh_token():
    """유효한 Refresh Token으로 새로운 Access Token을 발급합니다."""
    current_user_id = get_jwt_identity()
    new_access_token = create_access_token(identity=current_user_id)
    return jsonify(access_token=new_access_token), 200


# --- 로그아웃 엔드포인트 ---
@auth_bp.route('/logout', methods=['POST'])
def logout():
    """로그아웃. 전달받은 Access/Refresh 토큰을 무효화 목록에 추가합니다."""
    auth_service = current_app.services['auth']
    try:
        data = LogoutRequestSchema().load(request.get_json() or {})
        secret_key = current_app.config['JWT_SECRET_KEY']
        algorithm = current_app.config.get('JWT_ALGORITHM', 'HS256')

        # 만료된 토큰도 무효화할 수 있도록 만료 검사는 건너뜁니다.
        decoded_access = jwt.decode(data['access_token'], secret_key, algorithms=[algorithm], options={"verify_exp": False})
        decoded_refresh = jwt.decode(data['refresh_token'], secret_key, algorithms=[algorithm], options={"verify_exp": False})

        auth_service.logout_user(
            decoded_access['jti'], decoded_access['exp'],
            decoded_refresh['jti'], decoded_refresh['exp']
        )
        return jsonify({"message": "Logged out."}), 200

    except ValidationError as e:
        return jsonify({"error_code": "VALIDATION_ERROR", "details": e.messages}), 400
    except jwt.PyJWTError as e:
        logging.error(f"JWT 해독 오류 발생: {e}", exc_info=True)
        return jsonify({"error_code": "INVALID_TOKEN", "message": "Invalid token."}), 422
    except Exception as e:
        logging.error(f"로그아웃 처리 중 오류 발생: {e}", exc_info=True)
        return jsonify({"error_code": "LOGOUT_FAILED", "message": "An unknown error occurred"}), 500
