import pytest

from faraday.perms import REQUIRED_PERMISSIONS, Op, permissions_for


def test_node_audit_permissions():
    assert permissions_for("/frdrpc.FaradayServer/NodeAudit") == (
        Op(entity="audit", action="read"),
    )


def test_exchange_rate_permissions():
    assert permissions_for("/frdrpc.FaradayServer/ExchangeRate") == (
        Op(entity="rates", action="read"),
    )


@pytest.mark.parametrize(
    "method",
    [
        "/frdrpc.FaradayServer/RevenueReport",
        "/frdrpc.FaradayServer/CloseReport",
    ],
)
def test_report_methods_share_permission(method):
    assert permissions_for(method) == (Op(entity="report", action="read"),)


def test_recommendation_methods():
    outlier = permissions_for("/frdrpc.FaradayServer/OutlierRecommendations")
    threshold = permissions_for("/frdrpc.FaradayServer/ThresholdRecommendations")
    assert outlier == threshold
    assert outlier[0].entity == "recommendation"


def test_every_permission_is_read_only():
    for ops in REQUIRED_PERMISSIONS.values():
        assert ops
        assert all(op.action == "read" for op in ops)


def test_unknown_method_has_no_permissions():
    assert permissions_for("/frdrpc.FaradayServer/Unknown") == ()


def test_permissions_cannot_be_modified():
    with pytest.raises(TypeError):
        REQUIRED_PERMISSIONS["/x"] = ()  # type: ignore[index]
    assert permissions_for("/x") == ()
    assert permissions_for("/frdrpc.FaradayServer/NodeAudit") == (
        Op(entity="audit", action="read"),
    )