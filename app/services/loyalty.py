"""
Loyalty program rules: tier table, program configuration, redemption and earning.

Everything in this module is pure. The points configuration is an immutable
value built once per app from Flask config and passed into the calculators,
so the same inputs always produce the same numbers.

Money is always minor units (cents). Point amounts are always integers.
"""
import json
from dataclasses import dataclass
from decimal import Decimal, ROUND_FLOOR
from typing import Optional, List, Dict, Any, Tuple, Union

from ..utils.exceptions import ConfigurationError, ValidationError


@dataclass(frozen=True)
class Tier:
    """A named loyalty level covering an inclusive range of point balances."""
    name: str
    min_points: int
    max_points: Optional[int]  # None = unbounded
    bonus_multiplier: Decimal

    def contains(self, balance: int) -> bool:
        if balance < self.min_points:
            return False
        return self.max_points is None or balance <= self.max_points

    def to_dict(self) -> Dict[str, Any]:
        return {
            'name': self.name,
            'min': self.min_points,
            'max': self.max_points,
            'bonusMultiplier': float(self.bonus_multiplier),
        }


class TierTable:
    """
    Ordered, contiguous set of tiers.

    Ranges must start at 0, ascend by min_points with no gaps or overlaps,
    and only the last tier may be unbounded. Anything else is rejected when
    the table is built.
    """

    def __init__(self, tiers: List[Tier]):
        self.tiers: Tuple[Tier, ...] = tuple(sorted(tiers, key=lambda t: t.min_points))
        self._validate()

    def _validate(self) -> None:
        if not self.tiers:
            raise ConfigurationError('Tier table must define at least one tier')

        if self.tiers[0].min_points != 0:
            raise ConfigurationError('Lowest tier must start at 0 points')

        names = [t.name for t in self.tiers]
        if len(set(names)) != len(names):
            raise ConfigurationError('Tier names must be unique')

        for current, following in zip(self.tiers, self.tiers[1:]):
            if current.max_points is None:
                raise ConfigurationError(f'Only the highest tier may be unbounded ({current.name})')
            if following.min_points != current.max_points + 1:
                raise ConfigurationError(
                    f'Tier ranges must be contiguous: {current.name} ends at '
                    f'{current.max_points}, {following.name} starts at {following.min_points}'
                )

        for tier in self.tiers:
            if tier.max_points is not None and tier.max_points < tier.min_points:
                raise ConfigurationError(f'Tier {tier.name} has max below min')
            if tier.bonus_multiplier <= 0:
                raise ConfigurationError(f'Tier {tier.name} must have a positive multiplier')

    @classmethod
    def from_config(cls, raw: Union[str, List[Dict[str, Any]]]) -> 'TierTable':
        """
        Build a table from the LOYALTY_TIERS setting.

        Accepts either a JSON string or an already decoded list of
        {"name", "min", "max", "bonus_multiplier"} mappings.
        """
        if isinstance(raw, str):
            try:
                raw = json.loads(raw)
            except ValueError as e:
                raise ConfigurationError(f'LOYALTY_TIERS is not valid JSON: {e}')

        if not isinstance(raw, list):
            raise ConfigurationError('LOYALTY_TIERS must be a list of tiers')

        tiers = []
        for item in raw:
            if not isinstance(item, dict):
                raise ConfigurationError(f'Invalid tier definition {item!r}: expected an object')
            try:
                max_points = item.get('max')
                tiers.append(Tier(
                    name=str(item['name']).upper(),
                    min_points=int(item['min']),
                    max_points=int(max_points) if max_points is not None else None,
                    bonus_multiplier=Decimal(str(item.get('bonus_multiplier', '1'))),
                ))
            except (KeyError, TypeError, ValueError, ArithmeticError) as e:
                raise ConfigurationError(f'Invalid tier definition {item!r}: {e}')

        return cls(tiers)

    @property
    def lowest(self) -> Tier:
        return self.tiers[0]

    def get(self, name: str) -> Optional[Tier]:
        for tier in self.tiers:
            if tier.name == name:
                return tier
        return None

    def tier_for(self, balance: int) -> Tier:
        """Tier whose range contains the balance. Negative balances fall back to the lowest tier."""
        for tier in self.tiers:
            if tier.contains(balance):
                return tier
        return self.lowest

    def next_tier(self, balance: int) -> Optional[Tier]:
        """First tier above the one the balance sits in, or None at the top."""
        for tier in self.tiers:
            if tier.min_points > balance:
                return tier
        return None

    def __iter__(self):
        return iter(self.tiers)

    def __len__(self):
        return len(self.tiers)


@dataclass(frozen=True)
class PointsProgramConfig:
    """Points program parameters. Monetary values are minor units."""
    tiers: TierTable
    unit_value: int = 100
    earn_rate: int = 1
    signup_bonus: int = 50
    newsletter_bonus: int = 25
    review_bonus: int = 100
    points_per_unit_discount: int = 20
    max_discount_percent: int = 20
    min_order_for_redemption: int = 3000

    @classmethod
    def from_mapping(cls, config) -> 'PointsProgramConfig':
        """Build from a Flask config (or any mapping with the same keys)."""
        program = cls(
            tiers=TierTable.from_config(config.get('LOYALTY_TIERS') or []),
            unit_value=int(config.get('CURRENCY_UNIT_VALUE', 100)),
            earn_rate=int(config.get('POINTS_EARN_PER_UNIT', 1)),
            signup_bonus=int(config.get('POINTS_SIGNUP_BONUS', 50)),
            newsletter_bonus=int(config.get('POINTS_NEWSLETTER_BONUS', 25)),
            review_bonus=int(config.get('POINTS_REVIEW_BONUS', 100)),
            points_per_unit_discount=int(config.get('POINTS_PER_UNIT_DISCOUNT', 20)),
            max_discount_percent=int(config.get('POINTS_MAX_DISCOUNT_PERCENT', 20)),
            min_order_for_redemption=int(config.get('POINTS_MIN_ORDER_FOR_REDEMPTION', 3000)),
        )
        if program.unit_value <= 0 or program.points_per_unit_discount <= 0:
            raise ConfigurationError('CURRENCY_UNIT_VALUE and POINTS_PER_UNIT_DISCOUNT must be positive')
        if not 0 <= program.max_discount_percent <= 100:
            raise ConfigurationError('POINTS_MAX_DISCOUNT_PERCENT must be between 0 and 100')
        return program

    def to_public_dict(self) -> Dict[str, Any]:
        """Program rules as shown to storefront clients."""
        return {
            'earnPerEuro': self.earn_rate,
            'pointsPerEuroDiscount': self.points_per_unit_discount,
            'maxDiscountPercent': self.max_discount_percent,
            'minOrderForRedemption': self.min_order_for_redemption / self.unit_value,
            'signupBonus': self.signup_bonus,
            'newsletterBonus': self.newsletter_bonus,
            'reviewBonus': self.review_bonus,
        }


def get_points_config(app=None) -> PointsProgramConfig:
    """
    Points program for the app, built once and cached in app.extensions.
    """
    if app is None:
        from flask import current_app
        app = current_app._get_current_object()

    program = app.extensions.get('lunara_points')
    if program is None:
        program = PointsProgramConfig.from_mapping(app.config)
        app.extensions['lunara_points'] = program
    return program


# ==================== Redemption ====================

MIN_ORDER_NOT_MET = 'min_order_not_met'


@dataclass(frozen=True)
class Redemption:
    """Outcome of a points redemption preview."""
    points_to_use: int
    discount_amount: int
    max_points_usable: int
    max_discount_amount: int
    can_redeem: bool
    reason: Optional[str] = None

    def to_dict(self, unit_value: int = 100) -> Dict[str, Any]:
        return {
            'pointsToUse': self.points_to_use,
            'discountCents': self.discount_amount,
            'discount': self.discount_amount / unit_value,
            'maxPointsUsable': self.max_points_usable,
            'maxDiscountCents': self.max_discount_amount,
            'maxDiscount': self.max_discount_amount / unit_value,
            'canRedeem': self.can_redeem,
        }


def compute_redemption(
    cart_subtotal: int,
    points_balance: int,
    requested_points: Optional[int],
    config: PointsProgramConfig
) -> Redemption:
    """
    Work out how many points can be applied to a cart and what they are worth.

    The discount is capped both by max_discount_percent of the subtotal and by
    what the balance can buy, in whole currency units. requested_points of
    None or 0 means "as many as allowed"; larger requests are clamped.

    Args:
        cart_subtotal: Cart subtotal in minor units
        points_balance: Customer's current balance (negative treated as 0)
        requested_points: Points the customer asked to use
        config: Points program configuration

    Returns:
        Redemption. can_redeem is False when the points buy no whole currency
        unit, and False with reason 'min_order_not_met' when
        the subtotal is below the redemption minimum.
    """
    if cart_subtotal < 0:
        raise ValidationError('Cart total cannot be negative', field='cart_total')
    if requested_points is not None and requested_points < 0:
        raise ValidationError('Points to use cannot be negative', field='points_to_use')

    if cart_subtotal < config.min_order_for_redemption:
        return Redemption(0, 0, 0, 0, can_redeem=False, reason=MIN_ORDER_NOT_MET)

    balance = max(points_balance or 0, 0)
    unit = config.unit_value
    ppu = config.points_per_unit_discount

    max_by_percent = cart_subtotal * config.max_discount_percent // 100
    max_by_balance = (balance // ppu) * unit
    max_discount = min(max_by_percent, max_by_balance)

    # floor(max_discount / unit * ppu): whole points worth at most max_discount
    max_points = max_discount * ppu // unit

    points_to_use = min(requested_points or max_points, max_points)
    discount = (points_to_use // ppu) * unit

    return Redemption(
        points_to_use=points_to_use,
        discount_amount=discount,
        max_points_usable=max_points,
        max_discount_amount=max_discount,
        can_redeem=discount > 0,
    )


# ==================== Earning ====================

def calculate_points_earned(order_total: int, tier: Tier, config: PointsProgramConfig) -> int:
    """
    Points earned for a paid order.

    floor(floor(total / unit * earn_rate) * multiplier), in Decimal so a
    multiplier like 1.1 cannot push a result across a floor boundary.
    """
    if order_total <= 0:
        return 0

    base = (Decimal(order_total) / Decimal(config.unit_value) * config.earn_rate).to_integral_value(
        rounding=ROUND_FLOOR
    )
    boosted = (base * tier.bonus_multiplier).to_integral_value(rounding=ROUND_FLOOR)
    return int(boosted)
