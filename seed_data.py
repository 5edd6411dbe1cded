import random
import logging
from datetime import datetime, timedelta, timezone
from sqlalchemy import func
from sqlmodel import Session, SQLModel, select
from models import User, UserType, Producer, Product
from dependencies import engine

logger = logging.getLogger(__name__)

# Data pools
PRODUCERS = [
    ("Cantina Colli Alti", "Family winery in the hills"),
    ("Bottega del Mare", "Seaside cooking school"),
    ("Sentieri Outdoor", "Guided hikes and climbing days"),
    ("Atelier Ceramica", "Hand-thrown pottery workshops"),
]

EXPERIENCES = [
    ("Wine tasting at sunset", "Five wines paired with local cheeses on the terrace.", 45),
    ("Pasta masterclass", "Learn fresh pasta from scratch and eat what you make.", 60),
    ("Sunrise ridge hike", "A guided walk to the ridge in time for sunrise.", 35),
    ("Pottery wheel taster", "Two hours on the wheel, bowls fired and shipped.", 55),
    ("Harvest weekend", "Pick grapes, stomp them and stay for the dinner.", 180),
    ("Seafood market tour", "Morning market walk followed by a cooking lesson.", 75),
    ("Via ferrata intro", "Equipment and guide for a first via ferrata.", 95),
    ("Glaze and paint evening", "Decorate pieces with underglaze over aperitivo.", 40),
    ("Olive oil tasting", "Taste three harvests and learn how to judge oil.", 25),
    ("Cellar night tour", "Candlelit cellar walk with barrel samples.", 50),
]

def random_date(start_date, end_date):
    time_between = end_date - start_date
    random_seconds = random.randrange(int(time_between.total_seconds()))
    return start_date + timedelta(seconds=random_seconds)

def slugify(title: str) -> str:
    return "-".join(title.lower().split())

def create_test_data(session: Session | None = None) -> int:
    """Load a development catalogue, returns the number of products created"""
    owns_session = session is None
    session = session or Session(engine)
    SQLModel.metadata.create_all(session.get_bind())
    try:
        existing = session.exec(select(func.count(Product.id))).one()
        if existing:
            logger.info(f"Catalogue already has {existing} products, skipping seed")
            return 0

        producers = []
        for name, description in PRODUCERS:
            owner = User(
                email=f"{slugify(name)}@example.com",
                user_type=UserType.PRODUCER,
            )
            session.add(owner)
            session.flush()
            producer = Producer(user_id=owner.id, name=name, description=description)
            producers.append(producer)
            session.add(producer)

        session.commit()

        start_date = datetime.now(timezone.utc) - timedelta(days=90)
        end_date = datetime.now(timezone.utc)
        products = []
        for title, description, price in EXPERIENCES:
            producer = random.choice(producers)
            uid = slugify(title)
            product = Product(
                uid=uid,
                title=title,
                producer_id=producer.id,
                body={
                    "description": description,
                    "price": price,
                    "currency": "€",
                    "imageUrl": f"/images/{uid}.jpg",
                    "checkoutUrl": f"https://checkout.example.com/{uid}",
                },
                created_at=random_date(start_date, end_date),
            )
            products.append(product)

        session.add_all(products)
        session.commit()

        logger.info(f"Created {len(producers)} producers and {len(products)} products")
        return len(products)
    finally:
        if owns_session:
            session.close()

if __name__ == "__main__":
    from core.logging_config import setup_logging
    setup_logging()
    create_test_data()
