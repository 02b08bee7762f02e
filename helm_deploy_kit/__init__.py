"""
helm_deploy_kit
---------------

GKE 용 Helm 배포 파이프라인 플러그인.
환경변수로 설정을 받아 gcloud 인증, helm 패키징, GCS 업로드, 클러스터 배포를
정해진 순서로 한 번에 수행하는 것을 목표로 한다.
"""

__all__ = [
    "config",
    "orchestrator",
]
