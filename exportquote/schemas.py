from pydantic import BaseModel
from typing import Optional, Tuple
import enum


# --- Enums ---

class Mode(str, enum.Enum):
    FCL = "FCL"
    LCL = "LCL"


class ContainerType(str, enum.Enum):
    GP20 = "20GP"
    HQ40 = "40HQ"


class QtyInputType(str, enum.Enum):
    TONS = "tons"
    BAGS = "bags"


class InnerPackType(str, enum.Enum):
    NONE = "none"
    CARTON = "carton"
    WOVEN_BAG = "woven_bag"
    SMALL_BOX = "small_box"
    BIG_BOX = "big_box"


class PriceSource(str, enum.Enum):
    DEFAULT = "default"     # packaging option value
    OVERRIDE = "override"   # factory packaging override
    CUSTOM = "custom"       # caller-supplied for this quote


# --- Reference snapshot (read-only, owned by the maintenance screens) ---

class Record(BaseModel):
    class Config:
        frozen = True


class Product(Record):
    id: str
    name: str
    name_en: Optional[str] = None
    refund_rate: float = 0.0
    purchase_vat_rate: float = 0.0
    invoice_tax_point: float = 0.0
    pol_port_id: str = ""
    default_packaging_option_id: Optional[str] = None


class PackagingOption(Record):
    id: str
    product_id: str
    name: str = ""
    unit_weight_kg: float
    units_per_carton: Optional[float] = None
    carton_price_rmb: float = 0.0
    bag_price_rmb: float = 0.0
    inner_pack_type: InnerPackType = InnerPackType.NONE
    default_selected: bool = False


class PackagingRecommendation(Record):
    id: str
    product_id: str
    inner_pack_type: Optional[InnerPackType] = None
    unit_weight_kg: float
    recommended_units_per_carton: int
    notes: Optional[str] = None


class Factory(Record):
    id: str
    name: str
    default_port_id: Optional[str] = None


class FactoryProductCost(Record):
    id: str
    factory_id: str
    product_id: str
    cost_rmb_per_ton: float


class Port(Record):
    id: str
    name: str
    code: str = ""
    country: Optional[str] = None


class PortChargesRule(Record):
    id: str
    port_id: Optional[str] = None
    mode: Mode
    container_type: Optional[ContainerType] = None
    base_rmb: float = 0.0
    extra_rmb_per_ton: float = 0.0


class ContainerLoadRule(Record):
    id: str
    product_id: str
    container_type: ContainerType
    max_tons: float


class LandFreightRule(Record):
    id: str
    mode: Mode
    factory_id: Optional[str] = None
    container_type: ContainerType
    min_rmb_per_ton: float = 0.0
    max_rmb_per_ton: float = 0.0
    default_rmb_per_ton: float = 0.0


class FactoryPackagingOverride(Record):
    id: str
    factory_id: str
    packaging_option_id: str
    carton_price_rmb_override: Optional[float] = None
    bag_price_rmb_override: Optional[float] = None


class ReferenceSnapshot(Record):
    """
    Every reference table the engine reads. Extra keys from the surrounding
    application's data file (settings, history, schema_version) are ignored.
    """
    products: Tuple[Product, ...] = ()
    packaging_options: Tuple[PackagingOption, ...] = ()
    packaging_recommendations: Tuple[PackagingRecommendation, ...] = ()
    factories: Tuple[Factory, ...] = ()
    factory_product_costs: Tuple[FactoryProductCost, ...] = ()
    ports: Tuple[Port, ...] = ()
    port_charges_rules: Tuple[PortChargesRule, ...] = ()
    container_load_rules: Tuple[ContainerLoadRule, ...] = ()
    land_freight_rules: Tuple[LandFreightRule, ...] = ()
    factory_packaging_overrides: Tuple[FactoryPackagingOverride, ...] = ()


# --- Request / result contracts ---

class QuoteRequest(Record):
    """
    Caller-built quote parameters.

    Numeric ranges are checked by the engine, not here, so that every bad
    request surfaces as a specific QuoteError. Optional overrides are None
    when absent. override_units_per_carton is the exception: an explicit None
    means "ship loose", so "was it supplied" is read from model_fields_set.
    """
    product_id: str
    packaging_option_id: str
    factory_id: str
    mode: Mode
    container_type: ContainerType
    fx_rate: float
    margin_pct: float
    qty_input_type: Optional[QtyInputType] = None
    qty_input_value: Optional[float] = None
    override_unit_weight_kg: Optional[float] = None
    override_units_per_carton: Optional[float] = None
    override_bag_price_rmb: Optional[float] = None
    override_carton_price_rmb: Optional[float] = None
    override_inner_pack_type: Optional[InnerPackType] = None
    land_fee_override_rmb_per_ton: Optional[float] = None

    @property
    def has_units_per_carton_override(self) -> bool:
        return "override_units_per_carton" in self.model_fields_set


class QuoteSummary(Record):
    mode: Mode
    container_type: ContainerType
    mode_switched: bool = False
    max_tons: float
    tons: float
    bags: int
    bags_int: int
    cartons_int: int
    unit_weight_kg: float
    units_per_carton: Optional[int] = None
    inner_pack_type: InnerPackType
    bag_price_source: PriceSource
    carton_price_source: PriceSource
    fx_rate: float
    margin_pct: float
    net_rmb_per_bag: float
    cost_usd_per_bag: float
    sell_usd_per_bag: float
    sell_rmb_per_bag: float
    gp_rmb_per_bag: float
    gp_rmb_total: float
    fcl_port_total_rmb: float
    lcl_port_total_rmb: Optional[float] = None


class QuoteBreakdown(Record):
    raw_rmb_per_bag: float
    bag_mat_rmb_per_bag: float
    carton_rmb_per_bag: float
    land_rmb_per_bag: float
    land_rmb_per_ton_used: float
    land_total_rmb: float
    port_rmb_per_bag: float
    port_total_rmb: float
    domestic_total_rmb_per_bag: float
    rebate_rmb_per_bag: float
    net_rmb_per_bag: float


class QuoteResult(Record):
    summary: QuoteSummary
    breakdown: QuoteBreakdown
    warnings: Tuple[str, ...] = ()
