"""
pension_valuation/distribution.py - Statutory Survivor Distribution

Converts a beneficiary list into survivor-pension shares by relationship.

Rules:
- Spouse or domestic partner: 60% without children, 50% with children
- Each child: 15%
- Each parent: 15%, only when no spouse, partner or child is present
- If the shares sum above 100%, every share is scaled by 1 / sum

Shares are recomputed from the full list on every call; the result does not
depend on the order of the input.

Author: Actuarial Pipeline Project
License: MIT
"""

from typing import Iterable, Iterator, Sequence, Tuple
from types import MappingProxyType
from dataclasses import dataclass
import logging

from .scenario import Beneficiary, Relationship

logger = logging.getLogger(__name__)


PARTNER_SHARE_WITHOUT_CHILDREN = 0.60
PARTNER_SHARE_WITH_CHILDREN = 0.50
CHILD_SHARE = 0.15
PARENT_SHARE = 0.15

SURVIVOR_SHARE_RULES = MappingProxyType({
    'spouse_without_children': PARTNER_SHARE_WITHOUT_CHILDREN,
    'spouse_with_children': PARTNER_SHARE_WITH_CHILDREN,
    'domestic_partner_without_children': PARTNER_SHARE_WITHOUT_CHILDREN,
    'domestic_partner_with_children': PARTNER_SHARE_WITH_CHILDREN,
    'child': CHILD_SHARE,
    'parent': PARENT_SHARE,
})


@dataclass(frozen=True)
class StatutoryShare:
    """Share of one eligible beneficiary, before and after scaling."""
    beneficiary: Beneficiary
    statutory_share: float
    adjusted_share: float

    @property
    def relationship(self) -> Relationship:
        return self.beneficiary.relationship


@dataclass(frozen=True)
class Distribution:
    """
    Statutory distribution over the eligible beneficiaries.

    Attributes:
        shares: Eligible beneficiaries in input order
        total_share: Sum of the statutory (unscaled) shares
        scaling_factor: 1 / total_share when above 100%, else 1.0
    """
    shares: Tuple[StatutoryShare, ...]
    total_share: float
    scaling_factor: float

    def __iter__(self) -> Iterator[StatutoryShare]:
        return iter(self.shares)

    def __len__(self) -> int:
        return len(self.shares)

    @property
    def is_empty(self) -> bool:
        return not self.shares

    @property
    def paid_share(self) -> float:
        """Fraction of the reference pension paid out in total (capped at 100%)."""
        return min(self.total_share, 1.0)

    def weighted_dependents(self) -> Iterator[Tuple[Beneficiary, float]]:
        """(beneficiary, statutory share) pairs for the survivorship CNU."""
        for share in self.shares:
            yield share.beneficiary, share.statutory_share

    def aged(self, years: int) -> "Distribution":
        """Same shares with every dependent `years` older."""
        if years == 0:
            return self
        return Distribution(
            shares=tuple(
                StatutoryShare(
                    beneficiary=s.beneficiary.model_copy(update={'age': s.beneficiary.age + years}),
                    statutory_share=s.statutory_share,
                    adjusted_share=s.adjusted_share,
                )
                for s in self.shares
            ),
            total_share=self.total_share,
            scaling_factor=self.scaling_factor,
        )


def statutory_share(beneficiary: Beneficiary, has_children: bool,
                    has_partner_or_children: bool) -> float:
    """Unscaled share for one beneficiary given the household composition."""
    relationship = beneficiary.relationship
    if relationship.is_partner:
        return PARTNER_SHARE_WITH_CHILDREN if has_children else PARTNER_SHARE_WITHOUT_CHILDREN
    if relationship is Relationship.CHILD:
        return CHILD_SHARE
    if relationship.is_parent and not has_partner_or_children:
        return PARENT_SHARE
    return 0.0


def allocate_shares(beneficiaries: Iterable[Beneficiary]) -> Distribution:
    """
    Assign statutory shares to a beneficiary list.

    Args:
        beneficiaries: All declared beneficiaries

    Returns:
        Distribution holding only beneficiaries with a positive share
    """
    beneficiaries: Sequence[Beneficiary] = tuple(beneficiaries)

    has_children = any(b.relationship is Relationship.CHILD for b in beneficiaries)
    has_partner_or_children = has_children or any(b.relationship.is_partner for b in beneficiaries)

    eligible = []
    for beneficiary in beneficiaries:
        share = statutory_share(beneficiary, has_children, has_partner_or_children)
        if share > 0:
            eligible.append((beneficiary, share))

    total = sum(share for _, share in eligible)
    scaling = 1.0 / total if total > 1.0 else 1.0

    if scaling < 1.0:
        logger.warning(f"Survivor shares sum to {total:.0%}; scaling each share by {scaling:.4f}")

    shares = tuple(
        StatutoryShare(
            beneficiary=beneficiary,
            statutory_share=share,
            adjusted_share=share * scaling,
        )
        for beneficiary, share in eligible
    )

    logger.debug(f"Distribution: {len(shares)} eligible of {len(beneficiaries)}, total={total:.2f}")
    return Distribution(shares=shares, total_share=total, scaling_factor=scaling)
