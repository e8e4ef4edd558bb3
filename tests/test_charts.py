from decimal import Decimal

import matplotlib

matplotlib.use("Agg")

from stocktracker.charts import allocation_chart, gain_loss_chart  # noqa: E402


def test_charts_are_written(store, tech, tmp_path):
    store.apply_prices({"AAPL": Decimal("175.30"), "GOOGL": Decimal("118.10")})
    view = store.get_portfolio_view(tech)

    alloc = allocation_chart(view, str(tmp_path / "alloc.png"))
    gains = gain_loss_chart(view, str(tmp_path / "gains.png"))

    for path in (alloc, gains):
        assert path is not None
        assert (tmp_path / path.rsplit("/", 1)[-1]).stat().st_size > 0


def test_empty_portfolio_has_no_charts(store, tmp_path):
    p = store.create_portfolio("Empty")
    view = store.get_portfolio_view(p.id)
    assert allocation_chart(view, str(tmp_path / "a.png")) is None
    assert gain_loss_chart(view, str(tmp_path / "g.png")) is None
    assert list(tmp_path.iterdir()) == []
