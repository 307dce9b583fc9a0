# losty/utils/__init__.py
"""
유틸리티 모듈 패키지

프로젝트 전체에서 공통으로 사용되는 시간 처리 함수들을 포함합니다.
"""
