# entryboard/services/address_lookup_service.py
import logging
from typing import Optional
import requests

from entryboard.core.errors import RemoteReadFailed

logger = logging.getLogger(__name__)

class AddressLookupService:
    """
    호출자의 공인 네트워크 주소를 조회합니다.
    Cloudflare trace 엔드포인트는 `key=value` 줄 목록을 반환하며 그중 `ip=` 줄을 사용합니다.
    인증 없이 한 번만 호출하고 재시도하지 않습니다.
    """

    def __init__(self, url: str, timeout: Optional[float] = None, session: Optional[requests.Session] = None):
        self.url = url
        self.timeout = timeout
        self.session = session or requests.Session()

    @staticmethod
    def parse_trace(text: str) -> Optional[str]:
        for line in text.splitlines():
            key, _, value = line.partition('=')
            if key.strip() == 'ip' and value.strip():
                return value.strip()
        return None

    def fetch_caller_address(self) -> str:
        try:
            response = self.session.get(self.url, timeout=self.timeout)
            response.raise_for_status()
        except requests.RequestException as e:
            logger.error(f"네트워크 주소 조회 실패 ({self.url}): {e}", exc_info=True)
            raise RemoteReadFailed("네트워크 주소를 조회하지 못했습니다.") from e

        address = self.parse_trace(response.text)
        if not address:
            logger.error(f"네트워크 주소 응답에 ip 항목이 없습니다: {response.text[:200]}")
            raise RemoteReadFailed("네트워크 주소 응답을 해석하지 못했습니다.")
        return address
