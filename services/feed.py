from typing import Iterable
import logging

from sqlalchemy import func
from sqlmodel import Session, select

from models import Product, Producer, Experience, ExperiencePage

logger = logging.getLogger(__name__)


def parse_id_list(*raw_values: str | None) -> list[str]:
    """Merge comma-separated id lists, dropping blanks and duplicates"""
    ids: list[str] = []
    seen: set[str] = set()
    for raw in raw_values:
        if not raw:
            continue
        for part in raw.split(","):
            value = part.strip()
            if value and value not in seen:
                seen.add(value)
                ids.append(value)
    return ids


def _with_producer_name():
    return select(Product, Producer.name).join(
        Producer, Product.producer_id == Producer.id, isouter=True
    )


def resolve_product(session: Session, identifier: str) -> tuple[Product, str | None] | None:
    """Find a product by public uid, falling back to its primary key"""
    row = session.exec(_with_producer_name().where(Product.uid == identifier)).first()
    if row is None:
        row = session.exec(_with_producer_name().where(Product.id == identifier)).first()
    return row


def count_products(session: Session, ids: Iterable[str] | None = None) -> int:
    """Count every product, or only the existing ones among ``ids``"""
    query = select(func.count(Product.id))
    if ids is not None:
        ids = list(ids)
        if not ids:
            return 0
        query = query.where(Product.id.in_(ids))
    return session.exec(query).one()


def fetch_experience_page(
    session: Session,
    exclude_ids: list[str],
    limit: int,
    target: str | None = None,
) -> ExperiencePage:
    """Build one feed page.

    The target product, when it exists and has not been shown yet, opens the
    page. Otherwise an arbitrary unseen product does. The rest of the page is
    filled with the newest unseen products. ``has_more`` compares what the
    client will have seen after this page against the table size.
    """
    excluded = set(exclude_ids)
    rows: list[tuple[Product, str | None]] = []

    if target:
        resolved = resolve_product(session, target)
        if resolved is not None and resolved[0].id not in excluded:
            rows.append(resolved)
        else:
            logger.info(f"Target product {target} unavailable, using fallback")

    if not rows:
        fallback_query = _with_producer_name()
        if excluded:
            fallback_query = fallback_query.where(Product.id.notin_(list(excluded)))
        fallback = session.exec(fallback_query.order_by(func.random()).limit(1)).first()
        if fallback is not None:
            rows.append(fallback)

    if rows and limit > 1:
        skip = list(excluded | {rows[0][0].id})
        rest_query = (
            _with_producer_name()
            .where(Product.id.notin_(skip))
            .order_by(Product.created_at.desc(), Product.id)
            .limit(limit - 1)
        )
        rows.extend(session.exec(rest_query).all())

    page_ids = [product.id for product, _ in rows]
    total = count_products(session)
    seen = count_products(session, excluded | set(page_ids))

    return ExperiencePage(
        experiences=[Experience.from_product(product, name) for product, name in rows],
        has_more=seen < total,
    )
