import logging
from typing import Any, List, Optional

from rich.box import HEAVY, ROUNDED, SIMPLE
from rich.columns import Columns
from rich.console import Console
from rich.panel import Panel
from rich.table import Table
from rich.text import Text

from feastfinder.domain.interfaces.user_interface import UserInterface
from feastfinder.domain.models.cultural import CountryCulturalData, Dish, Recipe

logger = logging.getLogger(__name__)

DISH_TITLES = {"entry": "Entry", "main": "Main course", "dessert": "Dessert"}


class ConsoleDisplay(UserInterface):
    """Concrete implementation of UserInterface using the rich library for console output."""

    def __init__(self, console: Optional[Console] = None):
        self._console = console or Console()

    @property
    def console(self) -> Console:
        """Get the Rich console instance for direct operations."""
        return self._console

    def display_error(self, error_message: str, **kwargs: Any) -> None:
        """Displays an error message in a distinct style.

        Args:
            error_message: The error message to display.
        """
        panel = Panel(
            Text(error_message, style="white"),
            title="[bold red]Error[/bold red]",
            border_style="red",
            box=HEAVY,
            padding=(0, 1),
        )
        self.console.print(panel)

    def display_info(self, info_message: str, **kwargs: Any) -> None:
        panel = Panel(
            Text(info_message, style="white"),
            title="[bold blue]Info[/bold blue]",
            border_style="blue",
            box=SIMPLE,
            padding=(0, 1),
        )
        self.console.print(panel)

    def display_warning(self, warning_message: str, **kwargs: Any) -> None:
        logger.warning(f"Display warning: {warning_message}")
        panel = Panel(
            Text(warning_message, style="white"),
            title="[bold yellow]Warning[/bold yellow]",
            border_style="yellow",
            box=HEAVY,
            padding=(0, 1),
        )
        self.console.print(panel)

    def display_countries(self, countries: List[str]) -> None:
        if not countries:
            self.display_warning("No countries available.")
            return
        self.console.print(Columns(countries, equal=True, expand=True))
        self.console.print(f"[dim]{len(countries)} countries[/dim]")

    def _dish_panel(self, category: str, dish: Optional[Dish]) -> Panel:
        title = f"[bold green]{DISH_TITLES[category]}[/bold green]"
        if dish is None:
            return Panel(Text("No famous dish", style="dim"), title=title, box=ROUNDED, border_style="dim")
        body = Text()
        body.append(f"{dish.name}\n", style="bold white")
        body.append(f"{dish.description}\n\n")
        body.append("Ingredients: ", style="bold")
        body.append(", ".join(dish.ingredients))
        return Panel(body, title=title, box=ROUNDED, border_style="green")

    def display_cultural_data(self, country: str, data: CountryCulturalData) -> None:
        """Renders one panel per dish category, then the carol line."""
        self.console.print(f"\n[bold red]Christmas in {country}[/bold red]")
        self.console.print(
            Columns([self._dish_panel(c, getattr(data.dishes, c)) for c in DISH_TITLES], equal=True, expand=True)
        )
        if data.carol is None:
            self.console.print("[dim]No famous carol found.[/dim]")
            return
        author = data.carol.author or "Traditional"
        line = f"[bold]Carol:[/bold] {data.carol.name} [dim]({author})[/dim]"
        if data.spotify_url:
            line += f"\n[link={data.spotify_url}]{data.spotify_url}[/link]"
        self.console.print(line)

    def display_recipe(self, dish_name: str, recipe: Recipe) -> None:
        table = Table(title=f"Recipe: {dish_name}", box=ROUNDED, show_lines=True)
        table.add_column("#", justify="right", style="bold cyan", no_wrap=True)
        table.add_column("Instruction", style="white")
        table.add_column("Details", style="dim")
        for step in recipe.steps:
            table.add_row(str(step.step_number), step.instruction, step.details or "")
        self.console.print(table)
