"""Dashboard and ranking schemas."""

from decimal import Decimal

from pydantic import BaseModel


class StoreDashboardResponse(BaseModel):
    order_num: int
    goods_num: int
    unpaid_order_num: int
    unreplied_evaluation_num: int
    alert_goods_num: int
    waiting_audit_goods_num: int
    today_order_num: int
    today_order_price: Decimal


class AdminIndexResponse(BaseModel):
    member_num: int
    store_num: int
    goods_num: int
    order_num: int
    waiting_audit_goods_num: int
    applying_store_num: int
    today_member_num: int
    today_order_num: int
    today_order_price: Decimal


class GoodsRankItem(BaseModel):
    goods_id: int
    goods_name: str
    num: int
    price: Decimal


class StoreRankItem(BaseModel):
    store_id: int
    store_name: str
    num: int
    price: Decimal
