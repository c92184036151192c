from decimal import Decimal
from sqlalchemy import Column, Integer, String, Text, Numeric, Boolean
from ..database import Base


class Service(Base):
    __tablename__ = "services"

    id = Column(Integer, primary_key=True)
    name = Column(String, nullable=False)
    description = Column(Text, nullable=False)
    base_price = Column(Numeric(10, 2), nullable=False)
    image = Column(String, nullable=True)
    active = Column(Boolean, default=True)


DEFAULT_SERVICES = [
    {
        "name": "Rénovation",
        "description": "Rénovation complète de vos jantes en aluminium avec finition professionnelle",
        "base_price": "150.00",
        "image": "https://myjantes.fr/wp-content/uploads/2024/01/repar-jantes.jpg",
    },
    {
        "name": "Personnalisation",
        "description": "Personnalisation de vos jantes selon vos goûts et couleurs préférées",
        "base_price": "200.00",
        "image": "https://myjantes.fr/wp-content/uploads/2025/02/jantes-concaver-lexus-1024x675-1.webp",
    },
    {
        "name": "Dévoilage",
        "description": "Réparation et redressement de jantes voilées",
        "base_price": "80.00",
        "image": "https://myjantes.fr/wp-content/uploads/2024/01/dvoilage-3.jpg",
    },
    {
        "name": "Décapage",
        "description": "Décapage professionnel pour remettre vos jantes à neuf",
        "base_price": "120.00",
        "image": "https://myjantes.fr/wp-content/uploads/2025/02/jantes-intro-1024x675.webp",
    },
]


def seed_services(db) -> int:
    """Inserisce il catalogo di default se la tabella è vuota."""
    if db.query(Service).first():
        return 0
    db.add_all([Service(active=True, **{**s, "base_price": Decimal(s["base_price"])}) for s in DEFAULT_SERVICES])
    db.commit()
    return len(DEFAULT_SERVICES)
