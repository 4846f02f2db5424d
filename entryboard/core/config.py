# entryboard/core/config.py

import os # 'os' 모듈: 환경 변수를 읽기 위해 사용합니다.

class Config:
    """모든 환경 설정의 기반이 되는 공통 설정 클래스입니다."""
    DEBUG = False
    TESTING = False

    # Firebase Storage 버킷 이름. 엔트리 이미지가 업로드되는 위치입니다.
    FIREBASE_STORAGE_BUCKET = os.getenv('FIREBASE_STORAGE_BUCKET')
    # Google 로그인(InstalledAppFlow)에 필요한 클라이언트 시크릿 파일의 경로입니다.
    GOOGLE_CLIENT_SECRETS_PATH = os.getenv('GOOGLE_CLIENT_SECRETS_PATH')

    # 익명 사용자의 네트워크 주소를 조회하는 외부 엔드포인트입니다.
    ADDRESS_LOOKUP_URL = os.getenv('ADDRESS_LOOKUP_URL', 'https://www.cloudflare.com/cdn-cgi/trace')
    # None이면 requests 라이브러리 기본값을 따릅니다.
    ADDRESS_LOOKUP_TIMEOUT = float(os.getenv('ADDRESS_LOOKUP_TIMEOUT')) if os.getenv('ADDRESS_LOOKUP_TIMEOUT') else None
    # 익명 지문(fingerprint) HMAC 키. 유출되면 지문으로부터 주소를 역추적할 수 있으므로 비밀로 관리합니다.
    ANON_FINGERPRINT_KEY = os.getenv('ANON_FINGERPRINT_KEY')

    # 로그인 세션이 재시작 후에도 유지되도록 저장되는 JSON 파일 경로입니다.
    SESSION_PATH = os.getenv('SESSION_PATH', os.path.join(os.path.expanduser('~'), '.entryboard', 'session.json'))

    ENTRY_IMAGE_PATH = 'images/entry-{entry_id}'
    OPERATION_LOG_COLLECTION = os.getenv('OPERATION_LOG_COLLECTION', 'operations')

class DevelopmentConfig(Config):
    """개발 환경을 위한 설정 클래스입니다."""
    DEBUG = True
    # 개발용 Firebase 프로젝트에 연결하기 위한 서비스 계정 키 파일 경로입니다.
    FIREBASE_CREDENTIALS_PATH = os.getenv('DEV_FIREBASE_CREDENTIALS_PATH')

class TestingConfig(Config):
    """테스트 환경을 위한 설정 클래스입니다."""
    TESTING = True
    FIREBASE_CREDENTIALS_PATH = os.getenv('TEST_FIREBASE_CREDENTIALS_PATH')
    FIREBASE_STORAGE_BUCKET = 'entryboard-test.appspot.com'
    ANON_FINGERPRINT_KEY = 'testing-fingerprint-key'
    SESSION_PATH = None # 테스트에서는 세션을 디스크에 남기지 않습니다.

class ProductionConfig(Config):
    """운영 환경을 위한 설정 클래스입니다."""
    FIREBASE_CREDENTIALS_PATH = os.getenv('FIREBASE_CREDENTIALS_PATH')

# config_by_name: 문자열 키와 해당 환경의 설정 클래스를 매핑하는 딕셔너리입니다.
# entryboard/__init__.py의 create_client 함수에서 ENTRYBOARD_ENV 값에 따라 선택됩니다.
config_by_name = dict(
    development=DevelopmentConfig,
    testing=TestingConfig,
    production=ProductionConfig
)
