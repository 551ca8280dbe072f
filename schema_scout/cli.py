# === FILE: schema_scout/cli.py ===
#!/usr/bin/env python3
"""
Точка входа для запуска анализатора SchemaScout через командную строку.

Команды:
  check URL     Быстрая проверка JSON-LD разметки страницы
  analyze URL   Полный анализ одной страницы
  scan URL      Обход сайта и анализ всей популяции схем
  show SCAN_ID  Показать сохранённый результат анализа
  config        Показать текущую конфигурацию

Общие опции:
  --config PATH       Путь к YAML/JSON-конфигу (default: configs/default.yaml, если есть)
  --log-level LEVEL   Уровень логирования (DEBUG, INFO, ...)
  --log-file PATH     Файл для логов (stderr, если не указан)

Опции analyze / scan:
  --json PATH         Сохранить JSON-отчёт в файл
  --html PATH         Сохранить HTML-отчёт в файл
  --template DIR      Папка с Jinja2-шаблоном report.html.j2
  --pretty            Преформатировать JSON-вывод (отступ 2)

Пример:
  schema-scout scan https://example.com --max-pages 50 --depth 2 --json report.json
"""
import asyncio
import json
import sys
from pathlib import Path
from typing import Any, Optional

import click

from schema_scout import __version__
from schema_scout.config import AnalyzeOptions, AnalyzerConfig, SiteScanOptions, load_config
from schema_scout.engine import Engine
from schema_scout.errors import InvalidInput, ScanNotFound
from schema_scout.logger import DEFAULT_FORMAT, configure
from schema_scout.models import HealthReport, ScanRecord, ScanStatus
from schema_scout.report.html_report import render_html
from schema_scout.report.json_report import render_json

CONTEXT_SETTINGS = dict(help_option_names=["--help"])


def print_error(message: str):
    click.secho(message, fg='red', err=True)
    sys.exit(1)


async def quick_check(cfg: AnalyzerConfig, url: str) -> HealthReport:
    async with Engine(cfg) as engine:
        return await engine.quick_check(url)


async def analyze_page(cfg: AnalyzerConfig, url: str, options: AnalyzeOptions) -> ScanRecord:
    async with Engine(cfg) as engine:
        return await engine.analyze_single_page(url, options)


async def scan_site(cfg: AnalyzerConfig, url: str, options: SiteScanOptions) -> ScanRecord:
    async with Engine(cfg) as engine:
        scan_id = engine.start_site_scan(url, options)
        return await engine.wait(scan_id)


def _run(coro: Any, timeout: Optional[float]) -> Any:
    try:
        if timeout:
            return asyncio.run(asyncio.wait_for(coro, timeout=timeout))
        return asyncio.run(coro)
    except asyncio.TimeoutError:
        print_error(f'Анализ не завершён за {timeout} секунд')
    except InvalidInput as e:
        print_error(f'Некорректный запрос: {e}')


def _emit(record: ScanRecord, json_output, html_output, template_dir, pretty):
    # Если не сохраняем в файл, печатаем в stdout
    if not json_output and not html_output:
        click.echo(json.dumps(record.to_dict(), ensure_ascii=False, indent=2 if pretty else None))
    if json_output:
        try:
            saved_json = render_json(record, json_output, pretty=pretty)
            click.echo(f'JSON report: {saved_json}')
        except OSError as e:
            print_error(f'Ошибка при сохранении JSON: {e}')
    if html_output:
        try:
            saved_html = render_html(record, template_dir, html_output)
            click.echo(f'HTML report: {saved_html}')
        except OSError as e:
            print_error(f'Ошибка при сохранении HTML: {e}')
    if record.status is ScanStatus.FAILED:
        print_error(f'Анализ завершился ошибкой: {record.error}')


def report_options(func):
    func = click.option('--json', '-j', 'json_output', default=None,
                        type=click.Path(dir_okay=False, path_type=Path),
                        help='Сохранить JSON-отчёт в файл')(func)
    func = click.option('--html', '-h', 'html_output', default=None,
                        type=click.Path(dir_okay=False, path_type=Path),
                        help='Сохранить HTML-отчёт в файл')(func)
    func = click.option('--template', '-t', 'template_dir', default=None,
                        type=click.Path(exists=True, file_okay=False, path_type=Path),
                        help='Папка с Jinja2-шаблоном (по умолчанию встроенный)')(func)
    func = click.option('--pretty', is_flag=True,
                        help='Преформатировать JSON-вывод (отступ 2)')(func)
    func = click.option('--timeout', 'run_timeout', type=float, default=None,
                        help='Таймаут всей операции (секунд)')(func)
    return func


@click.group(context_settings=CONTEXT_SETTINGS)
@click.version_option(__version__, '--version', '-v', message='SchemaScout, version %(version)s')
@click.option(
    '--config', '-c', 'config_path',
    default=None,
    type=click.Path(exists=True, dir_okay=False, path_type=Path),
    help='Путь к файлу конфигурации YAML/JSON.'
)
@click.option(
    '--log-level', 'log_level',
    default='INFO', show_default=True,
    type=click.Choice(['DEBUG', 'INFO', 'WARNING', 'ERROR', 'CRITICAL']),
    help='Уровень логирования'
)
@click.option(
    '--log-file', 'log_file',
    default=None,
    type=click.Path(dir_okay=False, path_type=Path),
    help='Путь к файлу логов (stderr, если не указан)'
)
@click.option(
    '--log-format', 'log_format',
    default=DEFAULT_FORMAT,
    help='Строка формата для логов'
)
@click.pass_context
def cli(ctx, config_path, log_level, log_file, log_format):
    """Группа команд SchemaScout CLI."""
    configure(level=log_level, log_file=log_file, log_format=log_format)
    try:
        cfg = load_config(config_path)
    except Exception as e:
        print_error(f'Ошибка загрузки конфигурации: {e}')
    ctx.ensure_object(dict)
    ctx.obj['config'] = cfg


@cli.command('check', context_settings=CONTEXT_SETTINGS)
@click.argument('url')
@click.option('--pretty', is_flag=True, help='Преформатировать JSON-вывод (отступ 2)')
@click.pass_context
def check(ctx, url, pretty):
    """Быстрая проверка разметки страницы: статус, оценка, рекомендации."""
    cfg = ctx.obj['config']
    report = _run(quick_check(cfg, url), None)
    click.echo(json.dumps(report.to_dict(), ensure_ascii=False, indent=2 if pretty else None))


@cli.command('analyze', context_settings=CONTEXT_SETTINGS)
@click.argument('url')
@click.option('--quick', 'quick', is_flag=True, help='Без deep scan (короткий таймаут загрузки)')
@click.option('--no-consistency', 'no_consistency', is_flag=True, help='Не выводить проблемы @id')
@click.option('--no-recommendations', 'no_recommendations', is_flag=True, help='Без рекомендаций')
@click.option('--no-entities', 'no_entities', is_flag=True, help='Без анализа связей между сущностями')
@report_options
@click.pass_context
def analyze(ctx, url, quick, no_consistency, no_recommendations, no_entities,
            json_output, html_output, template_dir, pretty, run_timeout):
    """Полный анализ одной страницы."""
    cfg = ctx.obj['config']
    options = AnalyzeOptions(
        deep_scan=not quick,
        consistency_check=not no_consistency,
        recommendations=not no_recommendations,
        entity_analysis=not no_entities,
    )
    record = _run(analyze_page(cfg, url, options), run_timeout)
    _emit(record, json_output, html_output, template_dir, pretty)


@cli.command('scan', context_settings=CONTEXT_SETTINGS)
@click.argument('url')
@click.option('--max-pages', '-l', 'max_pages', type=int, default=None,
              help='Макс. число страниц (override max_pages)')
@click.option('--depth', '-d', 'crawl_depth', type=int, default=None,
              help='Глубина обхода (override crawl_depth)')
@click.option('--sitemaps/--no-sitemaps', 'include_sitemaps', default=None,
              help='Добавлять URL из sitemap.xml')
@report_options
@click.pass_context
def scan(ctx, url, max_pages, crawl_depth, include_sitemaps,
         json_output, html_output, template_dir, pretty, run_timeout):
    """Обойти сайт и проанализировать все найденные схемы."""
    cfg = ctx.obj['config']
    try:
        options = SiteScanOptions.from_config(
            cfg, max_pages=max_pages, crawl_depth=crawl_depth, include_sitemaps=include_sitemaps
        )
    except ValueError as e:
        print_error(f'Некорректные параметры обхода: {e}')
    click.echo(f'Starting scan: {url}', err=True)
    record = _run(scan_site(cfg, url, options), run_timeout)
    _emit(record, json_output, html_output, template_dir, pretty)


@cli.command('show', context_settings=CONTEXT_SETTINGS)
@click.argument('scan_id')
@click.option('--pretty', is_flag=True, help='Преформатировать JSON-вывод (отступ 2)')
@click.pass_context
def show(ctx, scan_id, pretty):
    """Показать сохранённый результат анализа по его scan_id."""
    cfg = ctx.obj['config']
    try:
        data = Engine(cfg).load_scan(scan_id)
    except ScanNotFound:
        print_error(f'Анализ {scan_id} не найден в {cfg.scans_dir}')
    except InvalidInput as e:
        print_error(f'Некорректный запрос: {e}')
    click.echo(json.dumps(data, ensure_ascii=False, indent=2 if pretty else None))


@cli.command('config', context_settings=CONTEXT_SETTINGS)
@click.pass_context
def show_config(ctx):
    """Показать текущую конфигурацию в JSON."""
    cfg = ctx.obj['config']
    click.echo(cfg.model_dump_json(indent=2))


if __name__ == "__main__":
    cli()
