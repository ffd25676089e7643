"""
Drawfolio - Region Reference Profiles

Static per-region rules: allocation system, refund policy, purge rule,
group-draw rounding and once-in-a-lifetime waiting periods.

Regions are a closed set (see ssot.Region). A region missing from one of
these tables means the rule does not apply there; it is never an error.
"""
from dataclasses import dataclass
from typing import Dict, Optional, Tuple

from .ssot import PointSystem, PurgeRule, Region


# =============================================================================
# REGION PROFILES
# =============================================================================

@dataclass(frozen=True)
class RegionProfile:
    region: Region
    name: str
    point_system: PointSystem
    refundable_tag_fees: bool = False   # Upfront tag fee returned if not drawn
    group_rounding: str = "floor"       # floor | exact | ceiling | round
    oil_species: Tuple[str, ...] = ()   # Once-in-a-lifetime / waiting-period species
    oil_waiting_years: Optional[int] = None  # 0 = permanent, None = no rule
    oil_description: str = ""


REGION_PROFILES: Dict[Region, RegionProfile] = {
    Region.AK: RegionProfile(Region.AK, "Alaska", PointSystem.RANDOM_LOTTERY),
    Region.AZ: RegionProfile(
        Region.AZ, "Arizona", PointSystem.BONUS,
        oil_species=("bighorn_sheep", "bison"),
        oil_waiting_years=0,
        oil_description="Arizona once-in-a-lifetime: you are permanently ineligible after drawing.",
    ),
    Region.CO: RegionProfile(
        Region.CO, "Colorado", PointSystem.PREFERENCE,
        oil_species=("moose", "bighorn_sheep", "mountain_goat"),
        oil_waiting_years=5,
        oil_description="Colorado bans re-application for moose/sheep/goat for 5 years after drawing.",
    ),
    Region.ID: RegionProfile(
        Region.ID, "Idaho", PointSystem.RANDOM_LOTTERY,
        refundable_tag_fees=True,
        group_rounding="exact",
        oil_species=("moose", "bighorn_sheep", "mountain_goat"),
        oil_waiting_years=0,
        oil_description="Idaho once-in-a-lifetime tags are permanent.",
    ),
    Region.KS: RegionProfile(Region.KS, "Kansas", PointSystem.PREFERENCE),
    Region.MT: RegionProfile(
        Region.MT, "Montana", PointSystem.BONUS_SQUARED,
        oil_species=("moose", "bighorn_sheep", "mountain_goat"),
        oil_waiting_years=7,
        oil_description="Montana enforces a 7-year waiting period after drawing moose/sheep/goat.",
    ),
    Region.ND: RegionProfile(Region.ND, "North Dakota", PointSystem.RANDOM_LOTTERY),
    Region.NE: RegionProfile(Region.NE, "Nebraska", PointSystem.PREFERENCE),
    Region.NM: RegionProfile(
        Region.NM, "New Mexico", PointSystem.RANDOM_LOTTERY,
        refundable_tag_fees=True,
        group_rounding="exact",
    ),
    Region.NV: RegionProfile(Region.NV, "Nevada", PointSystem.BONUS_SQUARED, group_rounding="exact"),
    Region.OR: RegionProfile(Region.OR, "Oregon", PointSystem.PREFERENCE),
    Region.UT: RegionProfile(Region.UT, "Utah", PointSystem.PREFERENCE),
    Region.WA: RegionProfile(Region.WA, "Washington", PointSystem.BONUS_SQUARED),
    Region.WY: RegionProfile(
        Region.WY, "Wyoming", PointSystem.PREFERENCE,
        group_rounding="exact",
        oil_species=("moose", "bighorn_sheep", "mountain_goat", "bison"),
        oil_waiting_years=3,
        oil_description="Wyoming enforces a 3-year waiting period after drawing moose/sheep/goat/bison.",
    ),
}


# =============================================================================
# INACTIVITY PURGE RULES ("use it or lose it")
# =============================================================================

POINT_PURGE_RULES: Dict[Region, PurgeRule] = {
    Region.CO: PurgeRule(
        Region.CO, 10,
        "Colorado deletes all preference points after 10 consecutive years of not applying.",
    ),
    Region.WY: PurgeRule(
        Region.WY, 2,
        "Wyoming deletes all preference points after missing 2 consecutive application cycles.",
    ),
    Region.NV: PurgeRule(
        Region.NV, 1,
        "Nevada deletes all bonus points if you fail to apply or buy points in any single year.",
    ),
    Region.UT: PurgeRule(
        Region.UT, 1,
        "Utah deletes all bonus/preference points if you fail to apply or buy points in any single year.",
    ),
    Region.OR: PurgeRule(
        Region.OR, 1,
        "Oregon deletes all preference points if you don't apply or buy points annually.",
    ),
    Region.KS: PurgeRule(
        Region.KS, 1,
        "Kansas deletes nonresident deer preference points if you don't apply annually.",
    ),
}


def get_profile(region: Region) -> RegionProfile:
    return REGION_PROFILES[region]


def point_system_for(region: Region) -> PointSystem:
    return REGION_PROFILES[region].point_system


def region_name(region: Region) -> str:
    return REGION_PROFILES[region].name


def is_lottery_region(region: Region) -> bool:
    return point_system_for(region) == PointSystem.RANDOM_LOTTERY
