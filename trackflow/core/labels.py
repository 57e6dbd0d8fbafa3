"""TrackFlow — Display Label Lookup Tables.

Used by the UI layer to render badges and form options; the engines never read them.
"""

from typing import Dict

from trackflow.models.engine_models import HealthStatus
from trackflow.models.metric_models import CreativeSource, CreativeStatus

HEALTH_LABELS: Dict[HealthStatus, str] = {
    HealthStatus.SUCCESS: "Verde",
    HealthStatus.WARNING: "Amarelo",
    HealthStatus.DANGER: "Vermelho",
    HealthStatus.NEUTRAL: "Sem dados",
}

CREATIVE_STATUS_LABELS: Dict[CreativeStatus, str] = {
    CreativeStatus.RELEASED: "Liberado",
    CreativeStatus.TESTING: "Em Teste",
    CreativeStatus.NOT_VALIDATED: "Não Validado",
    CreativeStatus.PAUSED: "Pausado",
    CreativeStatus.ARCHIVED: "Arquivado",
}

SOURCE_LABELS: Dict[CreativeSource, str] = {
    CreativeSource.FACEBOOK: "Facebook",
    CreativeSource.YOUTUBE: "YouTube",
    CreativeSource.TIKTOK: "TikTok",
    CreativeSource.OTHER: "Outro",
}


def health_label(status: HealthStatus | str) -> str:
    return HEALTH_LABELS[HealthStatus(status)]


def creative_status_label(status: CreativeStatus | str | None) -> str:
    """Label for a creative status; a missing status reads as testing."""
    return CREATIVE_STATUS_LABELS[CreativeStatus(status or CreativeStatus.TESTING)]


def source_label(source: str) -> str:
    """Label for a creative source, or the raw value when it is not a known one."""
    try:
        return SOURCE_LABELS[CreativeSource(source)]
    except ValueError:
        return source
