"""
cli.py
======
Command line entry point for the titular extraction engine.

Usage:
    titular extract <url> [--selectors JSON] [--deadline S] [--json]
    titular listing <url> --container CSS --link CSS --article-title CSS --article-content CSS
    titular recipes list [--domain D] [--verified] [--page N] [--limit N]
    titular recipes add <recipe.json> [--user ID]
    titular recipes stats <domain>
    titular catalog status
"""

import argparse
import json
import os
import sys

import logfire
from dotenv import load_dotenv
from rich.console import Console
from rich.panel import Panel
from rich.table import Table
from rich.theme import Theme

from titular.config import EngineConfig
from titular.engine import ExtractionEngine, ExtractOptions
from titular.models.results import ExtractionResult, ListingResult
from titular.storage.catalog import RecipeCatalog
from titular.storage.store import JsonRecipeStore, RecipeFilters
from titular.utils.exceptions import TitularError
from titular.utils.logging import setup_local_logging
from titular.validation.selectors import validate_selectors

THEME = Theme(
    {
        'info': 'dim cyan',
        'warning': 'magenta',
        'danger': 'bold red',
        'success': 'bold green',
        'step': 'bold blue',
    }
)


def build_parser() -> argparse.ArgumentParser:
    """Argument parser with one subcommand per operation."""
    parser = argparse.ArgumentParser(prog='titular', description='Adaptive news article extraction')
    parser.add_argument('--log-level', default='INFO', help='Level for the local log file')
    commands = parser.add_subparsers(dest='command', required=True)

    extract = commands.add_parser('extract', help='Extract one article')
    extract.add_argument('url', help='Article URL')
    extract.add_argument('--selectors', type=str, help='JSON object of custom article selectors')
    extract.add_argument('--recipe-id', type=str, help='Force a stored recipe')
    extract.add_argument('--deadline', type=float, help='Overall time budget in seconds')
    extract.add_argument('--no-ocr', action='store_true', help='Never fall back to OCR')
    extract.add_argument('--json', action='store_true', help='Print the raw result as JSON')

    listing = commands.add_parser('listing', help='Extract every article linked from a listing page')
    listing.add_argument('url', help='Listing page URL')
    listing.add_argument('--container', required=True, help='Selector of one listed article')
    listing.add_argument('--link', required=True, help='Selector of the article link inside a container')
    listing.add_argument('--title', help='Selector of the preview title inside a container')
    listing.add_argument('--article-title', required=True, help='Title selector on article pages')
    listing.add_argument('--article-content', required=True, help='Content selector on article pages')
    listing.add_argument('--json', action='store_true', help='Print the raw result as JSON')

    recipes = commands.add_parser('recipes', help='Manage stored recipes')
    recipe_commands = recipes.add_subparsers(dest='recipes_command', required=True)
    recipes_list = recipe_commands.add_parser('list', help='List recipes')
    recipes_list.add_argument('--domain', help='Only domains containing this text')
    recipes_list.add_argument('--verified', action='store_true', help='Only verified recipes')
    recipes_list.add_argument('--page', type=int, default=1)
    recipes_list.add_argument('--limit', type=int, default=20)
    recipes_add = recipe_commands.add_parser('add', help='Save a recipe from a JSON file')
    recipes_add.add_argument('file', help='Recipe JSON file')
    recipes_add.add_argument('--user', help='Creator id recorded on the recipe')
    recipes_stats = recipe_commands.add_parser('stats', help='Show usage statistics of a domain recipe')
    recipes_stats.add_argument('domain')

    catalog = commands.add_parser('catalog', help='Inspect the static recipe catalog')
    catalog_commands = catalog.add_subparsers(dest='catalog_command', required=True)
    catalog_commands.add_parser('status', help='Show catalog status')

    return parser


def print_result(console: Console, result: ExtractionResult) -> None:
    """Render an extraction result as a panel plus an attempts table."""
    style = 'green' if result.success else 'red'
    body = [
        f'[bold]Title:[/bold] {result.title or "-"}',
        f'[bold]Date:[/bold] {result.date or "-"}    [bold]Author:[/bold] {result.author or "-"}',
        f'[bold]Strategy:[/bold] {result.strategy or "-"}    [bold]Confidence:[/bold] {result.confidence:.2f}',
        f'[bold]Paywall:[/bold] {result.has_paywall} ({result.paywall_method}, {result.paywall_confidence:.2f})',
        f'[bold]Images:[/bold] {len(result.images)}    [bold]Time:[/bold] {result.extraction_time:.2f}s',
    ]
    if result.content:
        preview = result.content[:400] + ('...' if len(result.content) > 400 else '')
        body.append(f'\n{preview}')
    if not result.success:
        body.append(f'\n[danger]{result.reason or result.error or "extraction failed"}[/danger]')
    console.print(Panel('\n'.join(body), title=result.url or '', border_style=style))

    if result.attempted_strategies:
        table = Table(title='Attempts')
        table.add_column('Strategy', style='cyan')
        table.add_column('Success')
        table.add_column('Confidence', justify='right')
        table.add_column('Timed out')
        table.add_column('Error', style='magenta')
        for attempt in result.attempted_strategies:
            table.add_row(
                attempt.name,
                '✓' if attempt.success else '✗',
                f'{attempt.confidence:.2f}',
                'yes' if attempt.timed_out else '',
                attempt.error or '',
            )
        console.print(table)


def print_listing(console: Console, result: ListingResult) -> None:
    """Render a listing result."""
    console.print(
        Panel(
            f'Found {result.total_found} articles, extracted {result.total_scraped}',
            title=result.url,
            border_style='blue',
        )
    )
    table = Table()
    table.add_column('Title', style='cyan')
    table.add_column('Link')
    for article in result.articles:
        table.add_row(article.title or '', article.url or '')
    console.print(table)
    for error in result.errors:
        console.print(f'[warning]{error.url}: {error.error}[/warning]')
    for link in result.duplicates:
        console.print(f'[info]Duplicate of an earlier article: {link}[/info]')


def _cmd_extract(console: Console, engine: ExtractionEngine, args: argparse.Namespace) -> int:
    options = ExtractOptions(
        force_recipe_id=args.recipe_id,
        custom_selectors=json.loads(args.selectors) if args.selectors else None,
        deadline_seconds=args.deadline,
        allow_ocr=not args.no_ocr,
    )
    console.print(f'[step]Extracting {args.url}...[/step]')
    result = engine.extract(args.url, options)
    if args.json:
        console.print_json(result.model_dump_json())
    else:
        print_result(console, result)
    return 0 if result.success else 1


def _cmd_listing(console: Console, engine: ExtractionEngine, args: argparse.Namespace) -> int:
    listing_selectors = {'container': args.container, 'link': args.link, 'title': args.title}
    article_selectors = {'title': args.article_title, 'content': args.article_content}
    console.print(f'[step]Discovering articles on {args.url}...[/step]')
    result = engine.extract_listing(args.url, listing_selectors, article_selectors)
    if args.json:
        console.print_json(result.model_dump_json())
    else:
        print_listing(console, result)
    return 0 if result.total_scraped else 1


def _cmd_recipes(console: Console, store: JsonRecipeStore, args: argparse.Namespace) -> int:
    if args.recipes_command == 'list':
        filters = RecipeFilters(domain=args.domain, is_verified=True if args.verified else None)
        page = store.list_recipes(filters, page=args.page, limit=args.limit)
        table = Table(title=f'Recipes (page {page.page}/{max(page.total_pages, 1)}, {page.total} total)')
        table.add_column('Domain', style='cyan')
        table.add_column('Name')
        table.add_column('Verified')
        table.add_column('Confidence', justify='right')
        table.add_column('Uses', justify='right')
        table.add_column('Success', justify='right')
        table.add_column('Active')
        for recipe in page.recipes:
            table.add_row(
                recipe.domain,
                recipe.name,
                '✓' if recipe.is_verified else '',
                f'{recipe.confidence:.2f}',
                str(recipe.usage_count),
                f'{recipe.success_rate:.0%}',
                '✓' if recipe.is_active else '✗',
            )
        console.print(table)
        return 0

    if args.recipes_command == 'add':
        with open(args.file, encoding='utf-8') as f:
            data = json.load(f)
        errors = [
            (f'{group}.{name}', reason)
            for group in ('selectors', 'listingSelectors')
            if isinstance(data.get(group), dict)
            for name, reason in validate_selectors(data[group])
        ]
        if errors:
            table = Table(title=f'Invalid selectors in {args.file}')
            table.add_column('Field', style='cyan')
            table.add_column('Problem', style='danger')
            for name, reason in errors:
                table.add_row(name, reason)
            console.print(table)
            return 1
        recipe = store.save_recipe(data, created_by=args.user)
        console.print(f'[success]✓ Saved recipe {recipe.id} for {recipe.domain}[/success]')
        return 0

    stats = store.get_stats(args.domain)
    table = Table(title=f'Stats for {stats.domain}')
    table.add_column('Metric', style='cyan')
    table.add_column('Value', justify='right')
    for name, value in stats.model_dump().items():
        table.add_row(name, str(value))
    console.print(table)
    return 0


def _cmd_catalog(console: Console, config: EngineConfig) -> int:
    catalog = RecipeCatalog(config.catalog_path)
    try:
        catalog.init()
    except TitularError as e:
        console.print(f'[danger]{e}[/danger]')
    table = Table(title='Catalog status')
    table.add_column('Field', style='cyan')
    table.add_column('Value')
    for name, value in catalog.status().items():
        table.add_row(name, str(value))
    console.print(table)
    return 0 if catalog.status()['last_error'] is None else 1


def main(argv: list[str] | None = None) -> int:
    """Main entry point."""
    load_dotenv()

    logfire_token = os.getenv('LOGFIRE_TOKEN')
    if logfire_token:
        logfire.configure(token=logfire_token, service_name='titular')
    else:
        logfire.configure(send_to_logfire=False, console=False)

    args = build_parser().parse_args(argv)
    console = Console(theme=THEME)
    log_file = setup_local_logging(args.log_level)
    console.print(f'[info]Logging to {log_file}[/info]')

    config = EngineConfig.from_env()
    try:
        if args.command == 'catalog':
            return _cmd_catalog(console, config)
        if args.command == 'recipes':
            return _cmd_recipes(console, JsonRecipeStore(config.store_path), args)

        engine = ExtractionEngine.from_config(config)
        if args.command == 'listing':
            return _cmd_listing(console, engine, args)
        return _cmd_extract(console, engine, args)
    except (TitularError, ValueError, OSError) as e:
        console.print(f'[danger]Error: {e}[/danger]')
        return 1


if __name__ == '__main__':
    sys.exit(main())
