"""Enumerations shared by crawl results, storage and the search API."""

from enum import Enum


class Category(str, Enum):
    """Listing category. ``ALL`` is a query-side wildcard, never stored."""

    FIREARM = "firearm"
    AMMUNITION = "ammunition"
    OTHER = "other"
    ALL = "all"

    @classmethod
    def concrete(cls) -> list["Category"]:
        """Categories a stored listing can carry."""
        return [cls.FIREARM, cls.OTHER, cls.AMMUNITION]


class RetailerName(str, Enum):
    """Stable identifiers of every crawled retailer."""

    AL_FLAHERTYS = "al_flahertys"
    AL_SIMMONS = "al_simmons"
    BARTONS_BIG_COUNTRY = "bartons_big_country"
    BULLSEYE_NORTH = "bullseye_north"
    CALGARY_SHOOTING_CENTRE = "calgary_shooting_centre"
    CANADAS_GUN_STORE = "canadas_gun_store"
    CLINTON_SPORTING_GOODS = "clinton_sporting_goods"
    DANTE_SPORTS = "dante_sports"
    DOMINION_OUTDOORS = "dominion_outdoors"
    FIREARMS_OUTLET_CANADA = "firearms_outlet_canada"
    G4C_GUN_STORE = "g4c_gun_store"
    GREAT_NORTH_GUN = "great_north_gun"
    INTERNATIONAL_SHOOTING_SUPPLIES = "international_shooting_supplies"
    INTERSURPLUS = "intersurplus"
    ITALIAN_SPORTING_GOODS = "italian_sporting_goods"
    LEVER_ARMS = "lever_arms"
    MAGDUMP = "magdump"
    MARSTAR = "marstar"
    PROPHET_RIVER = "prophet_river"
    RANGEVIEW_SPORTS = "rangeview_sports"
    RDSC = "rdsc"
    RELIABLE_GUN = "reliable_gun"
    SELECT_SHOOTING_SUPPLIES = "select_shooting_supplies"
    SJ_HARDWARE = "sj_hardware"
    SOLEY_OUTDOORS = "soley_outdoors"
    TENDA = "tenda"
    THE_AMMO_SOURCE = "the_ammo_source"
    TILLSONBURG = "tillsonburg"
    TRUE_NORTH_ARMS = "true_north_arms"
    VICTORY_RIDGE_SPORTS = "victory_ridge_sports"


class ActionType(str, Enum):
    SEMI_AUTO = "semi_auto"
    LEVER_ACTION = "lever_action"
    BREAK_ACTION = "break_action"
    BOLT_ACTION = "bolt_action"
    OVER_UNDER = "over_under"
    PUMP_ACTION = "pump_action"
    SIDE_BY_SIDE = "side_by_side"
    SINGLE_SHOT = "single_shot"
    REVOLVER = "revolver"
    STRAIGHT_PULL = "straight_pull"
    MUZZLE_LOADER = "muzzle_loader"


class AmmunitionType(str, Enum):
    CENTER_FIRE = "center_fire"
    RIMFIRE = "rimfire"


class FirearmClass(str, Enum):
    NON_RESTRICTED = "non_restricted"
    RESTRICTED = "restricted"
    PROHIBITED = "prohibited"


class FirearmType(str, Enum):
    RIFLE = "rifle"
    SHOTGUN = "shotgun"


class SortOrder(str, Enum):
    """Search result ordering."""

    RELEVANT = "relevant"
    PRICE_ASC = "price-asc"
    PRICE_DESC = "price-desc"
