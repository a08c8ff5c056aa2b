"""
Command Line Interface for stackcheck.
"""
import logging
import os
import click
from ..exceptions import StackCheckError
from ..PARSERS.compose_parser import ComposeParser
from ..PARSERS.env_parser import EnvParser
from ..VALIDATORS.compose_validator import ComposeValidator
from ..RUNNERS.dependency_resolver import DependencyResolver
from ..CONVERTERS.to_compose import ComposeRenderer
from ..CONVERTERS.to_report import ReportRenderer

logger = logging.getLogger(__name__)

EXIT_INVALID = 1
EXIT_LOAD_ERROR = 2


def configure_logging(verbose: bool):
    if verbose:
        level = logging.DEBUG
    else:
        level = getattr(logging, os.environ.get("STACKCHECK_LOG_LEVEL", "WARNING").upper(), logging.WARNING)
    logging.basicConfig(format="%(levelname)s %(name)s: %(message)s")
    # basicConfig leaves an already configured root logger alone
    logging.getLogger().setLevel(level)


@click.group()
@click.option('--file', '-f', default='docker-compose.yml', help='Compose file path')
@click.option('--env-file', default=None, help='Variables file (defaults to .env beside the compose file)')
@click.option('--verbose', '-v', is_flag=True, help='Enable debug logging')
@click.pass_context
def cli(ctx, file, env_file, verbose):
    """
    stackcheck - Load and validate container-orchestration files.

    Checks that services, links and volumes reference each other correctly.
    """
    configure_logging(verbose)
    ctx.ensure_object(dict)
    ctx.obj['file'] = file
    ctx.obj['env_file'] = env_file


def load(ctx):
    """
    Loads the compose file named on the command line, or exits with status 2.
    """
    path = ctx.obj['file']
    if not os.path.exists(path):
        click.echo(f"Error: {path} not found.", err=True)
        ctx.exit(EXIT_LOAD_ERROR)

    logger.debug("Loading %s", path)
    project_dir = os.path.dirname(os.path.abspath(path))
    parser = ComposeParser(EnvParser.build_context(project_dir, ctx.obj['env_file']))
    try:
        raw = parser.load(path)
        config = parser.build(raw, source_path=path)
    except StackCheckError as e:
        click.echo(f"Error: {e}", err=True)
        ctx.exit(EXIT_LOAD_ERROR)
    return parser, raw, config


@cli.command()
@click.option('--strict', is_flag=True, help='Treat warnings as errors')
@click.option('--require-pinned', is_flag=True, help='Warn about images without a digest')
@click.option('--format', 'output_format', type=click.Choice(['text', 'json']), default='text')
@click.pass_context
def validate(ctx, strict, require_pinned, output_format):
    """Validate the compose file."""
    parser, raw, config = load(ctx)
    validator = ComposeValidator(config, raw=raw, context=parser.context, require_pinned=require_pinned)
    report = validator.validate()

    renderer = ReportRenderer()
    if output_format == 'json':
        click.echo(renderer.render_json(report, config))
    else:
        click.echo(renderer.render(report, config))

    if not report.ok or (strict and report.warnings):
        ctx.exit(EXIT_INVALID)


@cli.command()
@click.pass_context
def config(ctx):
    """Print the normalized compose file."""
    _, _, compose = load(ctx)
    click.echo(ComposeRenderer().render(compose), nl=False)


@cli.command()
@click.pass_context
def services(ctx):
    """List services"""
    _, _, compose = load(ctx)
    click.echo(f"{'SERVICE':15} {'IMAGE':40} LINKS")
    click.echo("-" * 70)
    for name, svc in compose.services.items():
        image = svc.image or f"(build {svc.build_context})"
        links = ", ".join(str(link) for link in svc.links)
        click.echo(f"{name:15} {image:40} {links}")


@cli.command()
@click.pass_context
def volumes(ctx):
    """List declared volumes and the services mounting them"""
    _, _, compose = load(ctx)
    click.echo(f"{'VOLUME':20} SERVICES")
    click.echo("-" * 40)
    for name in compose.volumes:
        click.echo(f"{name:20} {', '.join(compose.mounts_of(name))}")


@cli.command()
@click.option('--reverse', is_flag=True, help='Print shutdown order instead')
@click.pass_context
def order(ctx, reverse):
    """Print service startup order"""
    _, _, compose = load(ctx)
    resolver = DependencyResolver()
    try:
        names = resolver.shutdown_order(compose) if reverse else resolver.resolve_order(compose)
    except StackCheckError as e:
        click.echo(f"Error: {e}", err=True)
        ctx.exit(EXIT_INVALID)
    for name in names:
        click.echo(name)


def main():
    """
    Main entry point for the CLI.
    """
    cli(obj={})

if __name__ == '__main__':
    main()
