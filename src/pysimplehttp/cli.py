"""Command-line interface for pysimplehttp using Click."""

import asyncio
import logging
import sys
from typing import Optional, Tuple

import click

from pysimplehttp import __version__
from pysimplehttp.config import DEFAULT_AGENT, DEFAULT_TIMEOUT, Config
from pysimplehttp.http.client import PSEUDO_HEADERS, Method, build_request, create_client
from pysimplehttp.http.transport import is_transport_error


# Setup logging - default to WARNING so only the response reaches stdout
# INFO and DEBUG logs are only shown when --verbose is used
logging.basicConfig(
    level=logging.WARNING,
    format='%(asctime)s - %(name)s - %(levelname)s - %(message)s'
)
logger = logging.getLogger(__name__)


_COMMON_OPTIONS = [
    click.option('--timeout', default=DEFAULT_TIMEOUT, type=click.IntRange(min=0),
                 help='Request timeout in seconds (0 disables it)'),
    click.option('--user-agent', '-U', default=DEFAULT_AGENT, help='User-Agent header'),
    click.option('--cookie-file', help='Path to cookie file (Netscape format)'),
    click.option('--header-file', help='Path to header file'),
    click.option('--no-ssl-verify', is_flag=True, help='Disable SSL verification'),
    click.option('--include', '-i', is_flag=True, help='Print status line and headers'),
    click.option('--verbose', is_flag=True, help='Enable verbose logging'),
]

_BODY_OPTIONS = [
    click.option('--form', '-F', 'form', multiple=True, metavar='NAME=VALUE',
                 help='Form field (repeatable), sent URL-encoded'),
    click.option('--data', '-d', help='Raw request body'),
]


def common_options(func):
    """Options shared by every request command."""
    for option in reversed(_COMMON_OPTIONS):
        func = option(func)
    return func


def body_options(func):
    """Options for commands that send a body."""
    for option in reversed(_BODY_OPTIONS):
        func = option(func)
    return func


def parse_form_fields(fields: Tuple[str, ...]):
    """Parse NAME=VALUE strings into (name, value) pairs."""
    pairs = []
    for field in fields:
        if '=' not in field:
            raise click.BadParameter(f"Expected NAME=VALUE, got {field!r}", param_hint="'--form'")
        name, value = field.split('=', 1)
        pairs.append((name, value))
    return pairs


async def send(config: Config, method: Method, url: str, body=None):
    """Send one request and collect what the callback receives.

    Returns:
        Tuple of (body, headers)
    """
    result = {}

    def on_complete(body, headers):
        result['body'] = body
        result['headers'] = headers

    async with create_client(config) as client:
        request = build_request(method, url, body, client.headers)
        client.request(request, on_complete)

    return result['body'], result['headers']


def print_response(body: bytes, headers: dict, include: bool):
    """Write the response to stdout."""
    if include:
        version = headers.get('HTTPVersion', '1.1')
        click.echo(f"HTTP/{version} {headers['Status']} {headers['Reason']}")
        for name, value in headers.items():
            if name in PSEUDO_HEADERS:
                continue
            values = value if isinstance(value, list) else [value]
            for item in values:
                click.echo(f"{name}: {item}")
        click.echo()

    if body:
        click.echo(body, nl=False)


def run_command(
    method: Method,
    url: str,
    timeout: int,
    user_agent: str,
    cookie_file: Optional[str],
    header_file: Optional[str],
    no_ssl_verify: bool,
    include: bool,
    verbose: bool,
    body=None,
):
    """Build configuration, send the request and print the result."""
    # Enable verbose logging if requested
    if verbose:
        logging.getLogger().setLevel(logging.INFO)
        # Also enable httpx logging
        logging.getLogger('httpx').setLevel(logging.INFO)

    config = Config(
        timeout=timeout,
        user_agent=user_agent,
        cookie_file=cookie_file,
        header_file=header_file,
        verify_ssl=not no_ssl_verify,
    )

    logger.info(f"{method.value} {url}")
    response_body, headers = asyncio.run(send(config, method, url, body))

    if is_transport_error(headers):
        click.echo(f"✗ Failed: {headers['Reason']} ({headers['Status']})", err=True)
        sys.exit(1)

    print_response(response_body, headers, include)


@click.group(invoke_without_command=True)
@click.option('--version', '-v', is_flag=True, help='Show version and exit')
@click.pass_context
def cli(ctx, version):
    """pysimplehttp - Send HTTP requests with cookies and a User-Agent.

    Multiple Set-Cookie headers are shown one per line, the way the
    client's cookie jar stores them.
    """
    if version:
        click.echo(f"pysimplehttp version {__version__}")
        ctx.exit()

    # If no subcommand, show help
    if ctx.invoked_subcommand is None:
        click.echo(ctx.get_help())


@cli.command()
@click.argument('url')
@common_options
def get(url: str, **options):
    """Send a GET request.

    Example:
        pysimplehttp get https://example.com/ -i
    """
    run_command(Method.GET, url, **options)


@cli.command()
@click.argument('url')
@common_options
def head(url: str, **options):
    """Send a HEAD request and print the headers."""
    options['include'] = True
    run_command(Method.HEAD, url, **options)


@cli.command()
@click.argument('url')
@common_options
def delete(url: str, **options):
    """Send a DELETE request."""
    run_command(Method.DELETE, url, **options)


@cli.command()
@click.argument('url')
@body_options
@common_options
def post(url: str, form: Tuple[str, ...], data: Optional[str], **options):
    """Send a POST request with form fields or a raw body.

    Example:
        pysimplehttp post https://example.com/login -F user=me -F password=secret
    """
    if form and data is not None:
        raise click.UsageError("Use either --form or --data, not both")
    body = parse_form_fields(form) if form else data
    run_command(Method.POST, url, body=body, **options)


@cli.command()
@click.argument('url')
@body_options
@common_options
def put(url: str, form: Tuple[str, ...], data: Optional[str], **options):
    """Send a PUT request with form fields or a raw body."""
    if form and data is not None:
        raise click.UsageError("Use either --form or --data, not both")
    body = parse_form_fields(form) if form else data
    run_command(Method.PUT, url, body=body, **options)


def main():
    """Main entry point for CLI."""
    cli()


if __name__ == '__main__':
    main()
