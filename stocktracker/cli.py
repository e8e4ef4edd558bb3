"""
stocktracker/cli.py
===================
The interactive command-line interface.

The CLI only orchestrates: it prompts, calls the tracker, and prints the view
model. Every rule lives in the store, so a typed TrackerError is all it needs
to catch.
"""

from datetime import date
from typing import Optional, Set

from rich.panel import Panel
from rich.prompt import Confirm, Prompt

from stocktracker import charts, display, exporter
from stocktracker.display import console
from stocktracker.errors import TrackerError
from stocktracker.models import RefreshResult
from stocktracker.service import PortfolioTracker


class CLI:
    """Main command-line interface class."""

    def __init__(self, tracker: PortfolioTracker):
        self.tracker = tracker
        self.store   = tracker.store
        self._recently_updated: Set[str] = set()
        tracker.on_refresh(self._on_refresh)

    def _on_refresh(self, result: RefreshResult) -> None:
        # runs on the scheduler thread; only record, the menu loop prints
        self._recently_updated = set(result.updated_symbols)

    # -----------------------------------------------------------------------
    # Helpers
    # -----------------------------------------------------------------------

    def _active_id(self) -> Optional[str]:
        return self.store.active_id

    def _pick_portfolio(self, prompt: str) -> Optional[str]:
        """List portfolios and return the id the user picks by number."""
        views = [self.store.get_portfolio_view(pid) for pid in self.store.portfolio_ids()]
        display.print_portfolio_list(views, self._active_id())
        choices = [str(i) for i in range(1, len(views) + 1)]
        raw = Prompt.ask(prompt, choices=choices + [""], default="", show_choices=False)
        if not raw:
            return None
        return views[int(raw) - 1].portfolio_id

    def _run(self, action, *args) -> bool:
        """Call a tracker action, turning typed errors into messages."""
        try:
            action(*args)
            return True
        except TrackerError as e:
            console.print(f"[red]✗ {e}[/red]")
            return False

    # -----------------------------------------------------------------------
    # Menu actions
    # -----------------------------------------------------------------------

    def view_portfolio(self):
        view = self.tracker.active_view()
        if view is None:
            console.print("[yellow]No portfolios yet.[/yellow]")
            return
        display.print_portfolio(view)
        st = self.tracker.status()
        display.print_refresh_status(st.running, st.source, st.interval,
                                     st.last_updated, st.last_error)
        if self._recently_updated:
            console.print(f"  [{display.MUTED}]Updated:[/{display.MUTED}] "
                          + ", ".join(sorted(self._recently_updated)))
            self._recently_updated = set()

    def add_holding(self):
        pid = self._active_id()
        console.print("\n[steel_blue1]── Add Holding ──[/steel_blue1]")
        symbol = Prompt.ask("Stock symbol (e.g. AAPL, MSFT)").strip().upper()
        shares = Prompt.ask("Shares")
        price  = Prompt.ask("Purchase price per share ($)")
        bought = Prompt.ask("Purchase date (YYYY-MM-DD)",
                            default=date.today().strftime("%Y-%m-%d"))
        if self._run(self.store.add_holding, pid, symbol, shares, price, bought):
            console.print(f"[green]✓ {symbol} added[/green]")

    def remove_holding(self):
        view = self.tracker.active_view()
        if view is None or view.is_empty:
            console.print("[yellow]No holdings found.[/yellow]")
            return
        console.print("\nHoldings: " +
                      ", ".join(f"[cyan]{h.symbol}[/cyan]" for h in view.holdings))
        symbol = Prompt.ask("Symbol to remove").strip().upper()
        if Confirm.ask(f"[red]Remove {symbol} from '{view.name}'?[/red]"):
            if self._run(self.store.remove_holding, view.portfolio_id, symbol):
                console.print(f"[green]✓ {symbol} removed.[/green]")

    def switch_portfolio(self):
        pid = self._pick_portfolio("Switch to #")
        if pid and self._run(self.store.switch_portfolio, pid):
            self.view_portfolio()

    def create_portfolio(self):
        name = Prompt.ask("New portfolio name")
        if self._run(self.store.create_portfolio, name):
            console.print(f"[green]✓ Created '{name.strip()}'[/green]")

    def rename_portfolio(self):
        pid = self._active_id()
        current = self.store.get_portfolio(pid).name
        name = Prompt.ask("Portfolio name", default=current)
        if self._run(self.store.rename_portfolio, pid, name):
            console.print(f"[green]✓ Renamed to '{name.strip()}'[/green]")

    def delete_portfolio(self):
        pid = self._pick_portfolio("Delete #")
        if not pid:
            return
        name = self.store.get_portfolio(pid).name
        if Confirm.ask(f"[red]Delete '{name}' and all its holdings? This cannot be undone.[/red]"):
            if self._run(self.store.delete_portfolio, pid):
                console.print(f"[green]✓ '{name}' deleted.[/green]")

    def refresh_prices(self):
        try:
            with console.status("[dim]Fetching prices...[/dim]"):
                result = self.tracker.refresh()
        except TrackerError as e:
            console.print(f"[yellow]⚠ {e} (prices unchanged)[/yellow]")
            return
        if result.changed:
            console.print(f"[green]✓ Updated {', '.join(sorted(result.updated_symbols))}[/green]")
        else:
            console.print(f"[green]✓ Prices up to date as of {result.as_of:%H:%M:%S}[/green]")

    def toggle_auto_refresh(self):
        if self.tracker.scheduler.running:
            self.tracker.stop()
            console.print("[yellow]Auto-refresh paused.[/yellow]")
        else:
            self.tracker.start()
            console.print(f"[green]✓ Auto-refresh every {self.tracker.scheduler.interval:g}s[/green]")

    def export_data(self):
        view = self.tracker.active_view()
        if view is None or view.is_empty:
            console.print("[yellow]No holdings to export.[/yellow]")
            return
        console.print("\n  1. Export to Excel (.xlsx)")
        console.print("  2. Export to CSV")
        console.print("  3. Both")
        console.print("  4. JSON backup of all portfolios")
        choice = Prompt.ask("Choose", choices=["1", "2", "3", "4"])
        if choice in ("1", "3"):
            console.print(f"[green]✓ Excel saved: {exporter.export_to_excel(view)}[/green]")
        if choice in ("2", "3"):
            console.print(f"[green]✓ CSV saved:   {exporter.export_to_csv(view)}[/green]")
        if choice == "4":
            try:
                path = self.tracker.backup()
            except TrackerError as e:
                console.print(f"[red]✗ {e}[/red]")
                return
            console.print(f"[green]✓ Backup saved: {path}[/green]")

    def show_charts(self):
        view = self.tracker.active_view()
        if view is None or view.is_empty:
            console.print("[yellow]No holdings to chart.[/yellow]")
            return
        for path in (charts.allocation_chart(view, show=True),
                     charts.gain_loss_chart(view, show=True)):
            if path:
                console.print(f"[green]✓ Saved: {path}[/green]")

    # -----------------------------------------------------------------------
    # Main loop
    # -----------------------------------------------------------------------

    MENU = """
[grey39]┌─────────────────────────────────┐[/grey39]
[grey39]│[/grey39]  [steel_blue1]Stock Portfolio Tracker[/steel_blue1]         [grey39]│[/grey39]
[grey39]├─────────────────────────────────┤[/grey39]
[grey39]│[/grey39]  [white]1[/white]  [grey62]View portfolio[/grey62]              [grey39]│[/grey39]
[grey39]│[/grey39]  [white]2[/white]  [grey62]Add holding[/grey62]                 [grey39]│[/grey39]
[grey39]│[/grey39]  [white]3[/white]  [grey62]Remove holding[/grey62]              [grey39]│[/grey39]
[grey39]│[/grey39]  [white]4[/white]  [grey62]Switch portfolio[/grey62]            [grey39]│[/grey39]
[grey39]│[/grey39]  [white]5[/white]  [grey62]New portfolio[/grey62]               [grey39]│[/grey39]
[grey39]│[/grey39]  [white]6[/white]  [grey62]Rename portfolio[/grey62]            [grey39]│[/grey39]
[grey39]│[/grey39]  [white]7[/white]  [grey62]Delete portfolio[/grey62]            [grey39]│[/grey39]
[grey39]│[/grey39]  [white]8[/white]  [grey62]Refresh prices now[/grey62]          [grey39]│[/grey39]
[grey39]│[/grey39]  [white]9[/white]  [grey62]Toggle auto-refresh[/grey62]         [grey39]│[/grey39]
[grey39]│[/grey39]  [white]e[/white]  [grey62]Export  (Excel / CSV)[/grey62]       [grey39]│[/grey39]
[grey39]│[/grey39]  [white]c[/white]  [grey62]Charts[/grey62]                      [grey39]│[/grey39]
[grey39]│[/grey39]  [white]q[/white]  [grey62]Quit[/grey62]                        [grey39]│[/grey39]
[grey39]└─────────────────────────────────┘[/grey39]"""

    ACTIONS = {
        "1": "view_portfolio",
        "2": "add_holding",
        "3": "remove_holding",
        "4": "switch_portfolio",
        "5": "create_portfolio",
        "6": "rename_portfolio",
        "7": "delete_portfolio",
        "8": "refresh_prices",
        "9": "toggle_auto_refresh",
        "e": "export_data",
        "c": "show_charts",
    }

    def run(self):
        console.print(Panel(
            f"[bold white]Stock Portfolio Tracker[/bold white]  "
            f"[grey62]quotes · {self.tracker.source.name}[/grey62]",
            border_style="grey39",
            padding=(0, 2),
        ))
        self.tracker.start()
        try:
            while True:
                console.print(self.MENU)
                choice = Prompt.ask("Choice", default="1").strip().lower()
                if choice == "q":
                    console.print("[cyan]Goodbye![/cyan]")
                    break
                action = self.ACTIONS.get(choice)
                if action is None:
                    console.print("[red]Invalid choice. Please try again.[/red]")
                    continue
                getattr(self, action)()
        finally:
            self.tracker.shutdown()
