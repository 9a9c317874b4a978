from .order_state import OrderTransitionAuthority, TRANSITIONS, can_transition, is_authorized

__all__ = ["OrderTransitionAuthority", "TRANSITIONS", "can_transition", "is_authorized"]
