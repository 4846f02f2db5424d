# entryboard/services/storage_service.py
import logging
from typing import Optional, Tuple
from firebase_admin import storage

from entryboard.core.errors import NotFound, RemoteReadFailed, RemoteWriteFailed

logger = logging.getLogger(__name__)

class StorageService:
    """
    Firebase Storage 관련 로직을 담당하는 서비스 클래스입니다.
    엔트리 이미지 업로드/삭제와, 삭제 보상을 위한 다운로드 기능을 제공합니다.
    """

    def __init__(self):
        """
        클래스 인스턴스 생성 시 버킷을 None으로 초기화합니다.
        실제 버킷 객체는 init_app 메서드를 통해 주입됩니다.
        """
        self.bucket = None

    def init_app(self, config):
        """
        create_client 과정에서 호출되어 Storage 버킷을 설정합니다.

        :param config: Config 클래스 (FIREBASE_STORAGE_BUCKET 필요)
        """
        bucket_name = getattr(config, 'FIREBASE_STORAGE_BUCKET', None)
        if not bucket_name:
            raise ValueError("FIREBASE_STORAGE_BUCKET 설정이 .env 또는 설정 파일에 필요합니다.")

        self.bucket = storage.bucket(bucket_name)
        logger.info("StorageService: Firebase Storage 서비스가 성공적으로 초기화되었습니다.")

    def _blob(self, path: str):
        if not self.bucket:
            raise RuntimeError("StorageService가 초기화되지 않았습니다. init_app을 먼저 호출해주세요.")
        return self.bucket.blob(path)

    def upload(self, path: str, data: bytes, content_type: Optional[str] = None) -> None:
        try:
            self._blob(path).upload_from_string(data, content_type=content_type or 'application/octet-stream')
        except RuntimeError:
            raise
        except Exception as e:
            logger.error(f"파일 업로드 실패 ({path}): {e}", exc_info=True)
            raise RemoteWriteFailed(f"파일을 업로드하지 못했습니다: {path}") from e

    def exists(self, path: str) -> bool:
        try:
            return self._blob(path).exists()
        except RuntimeError:
            raise
        except Exception as e:
            logger.error(f"파일 존재 확인 실패 ({path}): {e}", exc_info=True)
            raise RemoteReadFailed(f"파일 상태를 확인하지 못했습니다: {path}") from e

    def download(self, path: str) -> Optional[Tuple[bytes, Optional[str]]]:
        """파일 내용과 MIME 타입을 반환합니다. 파일이 없으면 None."""
        if not self.bucket:
            raise RuntimeError("StorageService가 초기화되지 않았습니다. init_app을 먼저 호출해주세요.")
        try:
            blob = self.bucket.get_blob(path)
            if blob is None:
                return None
            return blob.download_as_bytes(), blob.content_type
        except Exception as e:
            logger.error(f"파일 다운로드 실패 ({path}): {e}", exc_info=True)
            raise RemoteReadFailed(f"파일을 내려받지 못했습니다: {path}") from e

    def delete(self, path: str) -> None:
        try:
            self._blob(path).delete()
        except RuntimeError:
            raise
        except Exception as e:
            logger.error(f"파일 삭제 실패 ({path}): {e}", exc_info=True)
            raise RemoteWriteFailed(f"파일을 삭제하지 못했습니다: {path}") from e

    def get_download_url(self, path: str) -> str:
        """
        지정된 파일을 공개(public)로 설정하고 해당 URL을 반환합니다.

        :param path: 공개로 전환할 파일의 경로
        :return: 공개적으로 접근 가능한 URL
        """
        blob = self._blob(path)

        if not self.exists(path):
            raise NotFound(f"파일을 찾을 수 없습니다: {path}")

        try:
            blob.make_public()
            return blob.public_url
        except Exception as e:
            logger.error(f"파일 공개 전환 실패: {e}", exc_info=True)
            raise RemoteWriteFailed(f"다운로드 URL을 만들지 못했습니다: {path}") from e
