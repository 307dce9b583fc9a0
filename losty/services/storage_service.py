# losty/services/storage_service.py
import uuid
import logging
from datetime import timedelta
from typing import Optional
from urllib.parse import unquote, urlparse
from flask import Flask
from firebase_admin import storage

class StorageService:
    """
    Firebase Storage 관련 로직을 담당하는 서비스 클래스입니다.
    - 업로드용 Pre-signed URL 발급
    - 업로드된 파일의 공개 전환 및 URL 반환
    - 게시물 삭제 시 이미지 파일 삭제
    """

    # 업로드 목적별 저장 폴더. 모든 경로는 사용자 uid로 구분됩니다.
    PATH_MAP = {
        "profile_picture": "profile_pictures/{user_id}",
        "post_image": "post_images/{user_id}",
    }

    def __init__(self, bucket=None):
        """실제 버킷 객체는 init_app 또는 생성자 주입으로 설정됩니다."""
        self.bucket = bucket

    def init_app(self, app: Flask):
        """
        Flask 앱 초기화 과정에서 호출되어 Storage 버킷을 설정합니다.

        :param app: Flask 애플리케이션 객체
        """
        bucket_name = app.config.get('FIREBASE_STORAGE_BUCKET')
        if not bucket_name:
            raise ValueError("FIREBASE_STORAGE_BUCKET 설정이 .env 또는 설정 파일에 필요합니다.")

        self.bucket = storage.bucket(bucket_name)
        logging.info("StorageService: Firebase Storage 서비스가 성공적으로 초기화되었습니다.")

    def _require_bucket(self):
        if not self.bucket:
            raise RuntimeError("StorageService가 초기화되지 않았습니다. init_app을 먼저 호출해주세요.")

    def folder_for(self, user_id: str, upload_type: str) -> str:
        """업로드 타입에 해당하는 사용자 전용 폴더 경로를 반환합니다."""
        template = self.PATH_MAP.get(upload_type)
        if not template:
            raise ValueError(f"'{upload_type}'은(는) 유효한 업로드 타입이 아닙니다.")
        return template.format(user_id=user_id)

    def generate_upload_url(self, user_id: str, upload_type: str, filename: str, content_type: str) -> dict:
        """
        파일 타입에 따라 적절한 경로에 업로드할 수 있는 Pre-signed URL을 생성합니다.
        클라이언트는 이 URL로 서버를 거치지 않고 Storage에 직접 PUT 업로드합니다.

        :return: 업로드 URL과 이후 API 호출에 사용할 파일 경로
        """
        self._require_bucket()
        folder_path = self.folder_for(user_id, upload_type)

        extension = filename.rsplit('.', 1)[-1].lower() if '.' in filename else 'jpg'
        destination_blob_name = f"{folder_path}/{uuid.uuid4()}.{extension}"

        blob = self.bucket.blob(destination_blob_name)

        # 15분 동안 유효한 업로드 전용 URL
        upload_url = blob.generate_signed_url(
            version="v4",
            expiration=timedelta(minutes=15),
            method="PUT",
            content_type=content_type
        )

        return {
            "upload_url": upload_url,
            "file_path": destination_blob_name
        }

    def ensure_owned_path(self, user_id: str, upload_type: str, file_path: str) -> str:
        """
        클라이언트가 보낸 파일 경로가 본인 폴더 아래에 있는지 확인합니다.
        다른 사용자의 파일을 자신의 게시물/프로필에 연결하는 것을 막습니다.
        """
        folder_path = self.folder_for(user_id, upload_type)
        normalized = (file_path or "").lstrip('/')
        if not normalized.startswith(folder_path + '/') or '..' in normalized.split('/'):
            raise ValueError(f"업로드 경로가 올바르지 않습니다: {file_path}")
        return normalized

    def make_public_and_get_url(self, file_path: str) -> str:
        """
        지정된 파일을 공개(public)로 설정하고 해당 URL을 반환합니다.

        :param file_path: 공개로 전환할 파일의 경로
        :return: 공개적으로 접근 가능한 URL
        """
        self._require_bucket()
        blob = self.bucket.blob(file_path)

        if not blob.exists():
            raise FileNotFoundError(f"파일을 찾을 수 없습니다: {file_path}")

        try:
            blob.make_public()
            return blob.public_url
        except Exception as e:
            logging.error(f"파일 공개 전환 실패: {e}", exc_info=True)
            raise

    def path_from_url(self, url: str) -> Optional[str]:
        """
        공개 URL 또는 Firebase 다운로드 URL에서 버킷 내부 파일 경로를 추출합니다.

        - https://storage.googleapis.com/<bucket>/<path>
        - https://firebasestorage.googleapis.com/v0/b/<bucket>/o/<encoded path>?alt=media
        """
        if not url:
            return None
        parsed = urlparse(url)
        path = parsed.path
        if parsed.netloc == "firebasestorage.googleapis.com" and "/o/" in path:
            return unquote(path.split("/o/", 1)[1])
        if parsed.netloc == "storage.googleapis.com":
            parts = path.lstrip('/').split('/', 1)
            if len(parts) == 2:
                return unquote(parts[1])
        return None

    def delete_file_by_url(self, url: str) -> bool:
        """
        URL이 가리키는 파일을 삭제합니다. 파일이 없으면 False를 반환합니다.
        """
        self._require_bucket()
        file_path = self.path_from_url(url)
        if not file_path:
            raise ValueError(f"Storage URL 형식이 아닙니다: {url}")

        blob = self.bucket.blob(file_path)
        if not blob.exists():
            return False
        blob.delete()
        return True
