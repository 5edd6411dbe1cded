from sqlalchemy import func
from sqlmodel import Session, select

from models import Interaction, InteractionAction, InteractionCreate

# Descriptive strings sent by older feed pages, plus the short codes
ACTION_ALIASES = {
    "user liked the product": InteractionAction.LIKE,
    "user disliked the product": InteractionAction.DISLIKE,
    "user viewed product details": InteractionAction.VIEW_DETAILS,
    "user shared the product": InteractionAction.SHARE,
    "user clicked buy button": InteractionAction.CLICK_BUY,
    "like": InteractionAction.LIKE,
    "dislike": InteractionAction.DISLIKE,
    "view_details": InteractionAction.VIEW_DETAILS,
    "share": InteractionAction.SHARE,
    "click_buy": InteractionAction.CLICK_BUY,
}

ACTION_FLAGS = {
    InteractionAction.LIKE: "liked",
    InteractionAction.DISLIKE: "disliked",
    InteractionAction.CLICK_BUY: "clicked_buy",
    InteractionAction.VIEW_DETAILS: "clicked_details",
    InteractionAction.SHARE: "clicked_share",
}


def normalize_action(action: str) -> InteractionAction | str:
    """Map a client action string to its code, upper-casing unknown ones"""
    key = action.strip().lower()
    if key in ACTION_ALIASES:
        return ACTION_ALIASES[key]
    return action.strip().upper()


def build_interaction(payload: InteractionCreate, user_agent: str | None = None) -> Interaction:
    """Turn a request body into the row to append.

    Either the ``action`` string or the individual flags describe the event;
    an explicit action also sets its matching flag.
    """
    flags = {
        "liked": payload.liked,
        "disliked": payload.disliked,
        "clicked_buy": bool(payload.clicked_buy),
        "clicked_details": bool(payload.clicked_details),
        "clicked_share": bool(payload.clicked_share),
    }

    action: str | None = None
    if payload.action and payload.action.strip():
        normalized = normalize_action(payload.action)
        if isinstance(normalized, InteractionAction):
            flags[ACTION_FLAGS[normalized]] = True
            action = normalized.value
        else:
            action = normalized
    else:
        for code, flag in ACTION_FLAGS.items():
            if flags[flag]:
                action = code.value
                break

    anonymous_data = None
    if not payload.user_id:
        anonymous_data = {"userAgent": user_agent}

    return Interaction(
        product_id=payload.product_id.strip(),
        user_id=payload.user_id or None,
        action=action,
        anonymous_data=anonymous_data,
        **flags,
    )


def summarize_interactions(session: Session, product_id: str | None = None) -> dict[str, int]:
    """Count recorded interactions per action code"""
    query = select(Interaction.action, func.count(Interaction.id)).group_by(Interaction.action)
    if product_id:
        query = query.where(Interaction.product_id == product_id)
    return {
        (action or "NONE"): count
        for action, count in session.exec(query).all()
    }
