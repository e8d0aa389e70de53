"""
데이터베이스 초기화 스크립트
"""
from eume.database import engine
# 모델을 임포트 (이것으로 모델이 Base에 등록된다)
from eume.models import Base


def init_database():
    """데이터베이스 테이블 생성"""
    print("데이터베이스를 초기화하고 있습니다...")

    # 모든 테이블 생성
    Base.metadata.create_all(bind=engine)

    print("데이터베이스 초기화가 완료되었습니다!")
    print("생성된 테이블:")
    for table in Base.metadata.sorted_tables:
        print(f"- {table.name}")


if __name__ == "__main__":
    init_database()
