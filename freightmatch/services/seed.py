"""Default rows created on startup when missing."""

import logging

from sqlalchemy.orm import Session

from freightmatch.db.enums import CoordinationCategory
from freightmatch.db.models.city import City
from freightmatch.db.models.coordination import CoordinationStatusConfig
from freightmatch.services.pricing import get_admin_settings

logger = logging.getLogger(__name__)

DEFAULT_CITIES = [
    "Casablanca", "Rabat", "Marrakech", "Fès", "Tanger", "Agadir",
    "Meknès", "Oujda", "Kénitra", "Tétouan", "El Jadida", "Safi",
]

DEFAULT_COORDINATION_STATUSES = [
    ("Client injoignable", "client_injoignable", CoordinationCategory.EN_ACTION, "#f59e0b", 1),
    ("Infos manquantes", "infos_manquantes", CoordinationCategory.EN_ACTION, "#f97316", 2),
    ("En attente de réponse client", "attente_reponse_client", CoordinationCategory.EN_ACTION, "#eab308", 3),
    ("Urgent", "urgent", CoordinationCategory.PRIORITAIRES, "#ef4444", 1),
    ("Client VIP", "client_vip", CoordinationCategory.PRIORITAIRES, "#8b5cf6", 2),
]


def seed_defaults(db: Session) -> None:
    get_admin_settings(db)

    if db.query(City).count() == 0:
        db.add_all([City(name=name) for name in DEFAULT_CITIES])
        logger.info("Seeded %d cities", len(DEFAULT_CITIES))

    if db.query(CoordinationStatusConfig).count() == 0:
        db.add_all(
            [
                CoordinationStatusConfig(label=label, value=value, category=category.value, color=color, display_order=order)
                for label, value, category, color, order in DEFAULT_COORDINATION_STATUSES
            ]
        )
        logger.info("Seeded %d coordination statuses", len(DEFAULT_COORDINATION_STATUSES))
    db.commit()
