"""
Business logic services for LUNARA.
"""
from .loyalty import (
    Tier,
    TierTable,
    PointsProgramConfig,
    Redemption,
    get_points_config,
    compute_redemption,
    calculate_points_earned,
)
from .points_service import PointsService
from .settlement_service import SettlementService, PaymentConfirmation, ORDER_TRANSITIONS

__all__ = [
    'Tier',
    'TierTable',
    'PointsProgramConfig',
    'Redemption',
    'get_points_config',
    'compute_redemption',
    'calculate_points_earned',
    'PointsService',
    'SettlementService',
    'PaymentConfirmation',
    'ORDER_TRANSITIONS',
]
