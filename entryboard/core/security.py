import hashlib
import hmac

DIGEST = hashlib.sha256


def fingerprint(address: str, key: str) -> str:
    """
    익명 사용자의 네트워크 주소로부터 지문(fingerprint)을 만듭니다.

    키가 있는 HMAC-SHA256을 사용하므로 키를 모르면 주소 공간을 대입해도 역추적할 수 없습니다.
    같은 주소와 같은 키는 항상 같은 지문을 만듭니다.
    """
    if not key:
        raise ValueError("ANON_FINGERPRINT_KEY 설정이 .env 또는 설정 파일에 필요합니다.")
    if not address:
        raise ValueError("지문을 만들 네트워크 주소가 비어 있습니다.")
    return hmac.new(key.encode('utf-8'), address.strip().encode('utf-8'), DIGEST).hexdigest()
