# cli.py
import sys
from datetime import datetime
from decimal import Decimal, InvalidOperation
from typing import Any, Dict, List, Optional

from rich.console import Console
from rich.table import Table
from rich.panel import Panel
from rich.prompt import Confirm, Prompt
from rich.progress import Progress, SpinnerColumn, TextColumn
from rich import box

from prompt_toolkit import prompt
from prompt_toolkit.completion import WordCompleter
from prompt_toolkit.styles import Style as PromptStyle

from billing.config import get_settings
from sdk.billing_client import BillingClient

console = Console()
c = BillingClient(base_url=get_settings().base_url)

status_message = "Ready"
product_cache: List[Dict[str, Any]] = []

custom_style = PromptStyle.from_dict({
    'completion-menu.completion': 'bg:#008888 #ffffff',
    'completion-menu.completion.current': 'bg:#00aaaa #000000',
})


# ---------------------------
# Display helpers
# ---------------------------
def show_products(products: List[Dict[str, Any]]):
    if not products:
        console.print("[italic yellow]No products found[/italic yellow]")
        return

    table = Table(title="📦 Store Catalog", box=box.ROUNDED, header_style="bold cyan", show_lines=True)
    table.add_column("Identifier", style="dim", width=20)
    table.add_column("Title", style="bold", width=20)
    table.add_column("Description", width=30)
    table.add_column("Price", justify="right", width=14)
    table.add_column("Locale", width=8)

    for p in products:
        table.add_row(
            p.get("identifier", "N/A"),
            p.get("title", "N/A"),
            p.get("description", ""),
            p.get("formatted_price") or f"{p.get('price')} {p.get('currency_code', '')}",
            p.get("locale_tag", ""),
        )
    console.print(table)


def show_entitlements(identifiers: List[str]):
    if not identifiers:
        console.print("[italic yellow]No purchases yet[/italic yellow]")
        return
    body = "\n".join(f"✅ {identifier}" for identifier in identifiers)
    console.print(Panel.fit(body, title="🧾 Owned products", border_style="green"))


def show_status(message: str, is_success: bool = True):
    style = "green" if is_success else "red"
    return Panel.fit(f"[{style}]{message}[/{style}]", title="Status")


def _error_detail(resp) -> str:
    try:
        detail = resp.json().get("detail")
    except ValueError:
        return f"HTTP {resp.status_code}"
    if isinstance(detail, dict):
        return detail.get("message", str(detail))
    return str(detail)


# ---------------------------
# API wrapper
# ---------------------------
def try_api(fn, *args, success_msg: Optional[str] = None, **kwargs):
    """Call fn with a spinner; print and swallow transport errors for the menu loop."""
    global status_message
    try:
        with Progress(SpinnerColumn(), TextColumn("[progress.description]{task.description}"), transient=True) as progress:
            progress.add_task(description="Waiting for store...", total=None)
            result = fn(*args, **kwargs)
        if success_msg:
            status_message = success_msg
        return result
    except Exception as e:
        status_message = f"Error: {e}"
        return None


def get_product_completer():
    ids = [p.get("identifier", "") for p in product_cache]
    return WordCompleter([i for i in ids if i], ignore_case=True)


def prompt_with_autocomplete(message: str, completer=None, default: str = ""):
    return prompt(f"{message} ", completer=completer, style=custom_style, default=default)


def ask_price(message: str, default: str = "0.99") -> Decimal:
    while True:
        raw = Prompt.ask(message, default=default)
        try:
            return Decimal(raw)
        except InvalidOperation:
            console.print("[red]Please enter a valid price.[/red]")


# ---------------------------
# Main menu
# ---------------------------
def menu():
    global status_message, product_cache

    console.clear()
    now = datetime.now().strftime("%Y-%m-%d %H:%M:%S")
    console.print(Panel(f"🛍️ [bold blue]Billing bridge[/bold blue]  [dim]{now}[/dim]", style="bold blue"))

    while True:
        console.print(show_status(status_message, "Error" not in status_message))

        menu_table = Table.grid(padding=(0, 2))
        menu_table.add_column("Key", style="bold cyan", width=4)
        menu_table.add_column("Option", width=30)
        for row in [
            ("1", "📦 Fetch products"),
            ("2", "💳 Purchase"),
            ("3", "🧾 Restore purchases"),
            ("4", "➕ Add product to store"),
            ("5", "⚙️ Decline payments for products"),
            ("6", "🔄 Reset session"),
            ("q", "👋 Quit"),
        ]:
            menu_table.add_row(*row)
        console.print(Panel(menu_table, title="📋 Menu", border_style="yellow"))

        choice = prompt_with_autocomplete(
            "\nChoose an option", completer=WordCompleter([str(i) for i in range(1, 7)] + ["q"])
        ).strip()

        if choice == "1":
            raw = prompt_with_autocomplete("Identifiers (space separated)", completer=get_product_completer())
            products = try_api(c.fetch_products, raw.split(), success_msg="Products fetched")
            if products is not None:
                product_cache = products
                show_products(products)

        elif choice == "2":
            identifier = prompt_with_autocomplete("Product identifier", completer=get_product_completer()).strip()
            resp = try_api(c.purchase, identifier)
            if resp is None:
                continue
            if resp.status_code == 200:
                status_message = f"Purchased {identifier}"
                show_entitlements(resp.json())
            else:
                status_message = f"Error: {_error_detail(resp)}"

        elif choice == "3":
            owned = try_api(c.fetch_purchases, success_msg="Purchases restored")
            if owned is not None:
                show_entitlements(owned)

        elif choice == "4":
            identifier = prompt_with_autocomplete("Identifier").strip()
            title = prompt_with_autocomplete("Title").strip()
            price = ask_price("💰 Price")
            currency = Prompt.ask("Currency", default="USD")
            try_api(c.register_product, identifier, title, price, currency,
                    success_msg=f"Product '{identifier}' added to store")

        elif choice == "5":
            raw = prompt_with_autocomplete("Identifiers to decline", completer=get_product_completer())
            try_api(c.store_settings, declined=raw.split(), success_msg="Store behaviour updated")

        elif choice == "6":
            if Confirm.ask("[red]This will clear the session. Continue?[/red]"):
                try_api(c.reset, success_msg="Session reset")
                product_cache = []

        elif choice.lower() in ("q", "quit", "exit"):
            console.print(Panel.fit("[bold green]Bye 👋[/bold green]"))
            sys.exit(0)

        console.rule(style="dim")


if __name__ == "__main__":
    try:
        menu()
    except KeyboardInterrupt:
        console.print("\n\n[bold red]Interrupted by user[/bold red]")
        sys.exit(1)
