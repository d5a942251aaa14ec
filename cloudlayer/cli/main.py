"""cloudlayer CLI - Main commands."""
import asyncio
import logging
from typing import List, Optional

import typer
from rich.console import Console
from rich.table import Table

from cloudlayer import setup_logging
from cloudlayer.core import CloudLayerException, ConfigStore, Method, Router, raise_for_status
from cloudlayer.core.backends import decode, encode
from cloudlayer.core.crypto import obscure as obscure_password
from cloudlayer.core.crypto import reveal as reveal_password
from cloudlayer.core.models import DEFAULT_READ_SIZE, Body

app = typer.Typer(
    name="cloudlayer",
    help="Composable storage backends: chunking, encryption and aliases",
    add_completion=False
)
console = Console()
err_console = Console(stderr=True)


def run_async(coro):
    """Run async function."""
    return asyncio.run(coro)


def make_router() -> Router:
    """Router over remotes defined in CLOUDLAYER_CONFIG_* variables."""
    return Router(ConfigStore.from_env())


def fail(message: str):
    err_console.print(f"[red]{message}[/red]")
    raise typer.Exit(1)


async def _stdin_body() -> Body:
    stream = typer.get_binary_stream("stdin")
    while True:
        piece = stream.read(DEFAULT_READ_SIZE)
        if not piece:
            break
        yield piece


@app.callback()
def callback(
    verbose: bool = typer.Option(False, "--verbose", "-v", help="Enable debug logging"),
):
    """Composable storage backends."""
    if verbose:
        logging.basicConfig(format="%(asctime)s %(name)s %(levelname)s %(message)s")
        setup_logging(logging.DEBUG)


@app.command()
def obscure(
    password: Optional[str] = typer.Argument(None, help="Password to obscure"),
):
    """Obscure a password for use in remote options."""
    if password is None:
        password = typer.prompt("Password", hide_input=True)
    typer.echo(obscure_password(password))


@app.command()
def reveal(
    obscured: str = typer.Argument(..., help="Obscured password"),
):
    """Reveal an obscured password."""
    try:
        typer.echo(reveal_password(obscured))
    except ValueError as e:
        fail(str(e))


def _crypt_params(remote: str):
    router = make_router()
    try:
        resolved = router.resolve(remote if ":" in remote else remote + ":")
    except CloudLayerException as e:
        fail(e.message)
    if resolved.type != "crypt":
        fail(f"{remote} is not a crypt remote")
    return resolved.params


@app.command()
def cryptencode(
    remote: str = typer.Argument(..., help="Crypt remote"),
    names: List[str] = typer.Argument(..., help="Names to encrypt"),
):
    """Print the encrypted form of file names."""
    params = _crypt_params(remote)
    try:
        for name, encrypted in zip(names, encode(params, *names)):
            typer.echo(f"{name}\t{encrypted}")
    except CloudLayerException as e:
        fail(e.message)


@app.command()
def cryptdecode(
    remote: str = typer.Argument(..., help="Crypt remote"),
    names: List[str] = typer.Argument(..., help="Encrypted names"),
):
    """Print the decrypted form of encrypted file names."""
    params = _crypt_params(remote)
    try:
        for name, decrypted in zip(names, decode(params, *names)):
            typer.echo(f"{name}\t{decrypted}")
    except CloudLayerException as e:
        fail(e.message)


@app.command()
def cat(
    target: str = typer.Argument(..., help="remote:path of the object"),
):
    """Write an object to standard output."""
    async def do_cat():
        out = typer.get_binary_stream("stdout")
        async with make_router() as router:
            response = raise_for_status(await router.request(target, Method.READ_CONTENT), target)
            if response.body is None:
                return
            async for piece in response.body:
                out.write(piece)
            out.flush()
    
    try:
        run_async(do_cat())
    except CloudLayerException as e:
        fail(e.message)


@app.command()
def rcat(
    target: str = typer.Argument(..., help="remote:path of the object"),
):
    """Store standard input as an object."""
    async def do_rcat():
        async with make_router() as router:
            await router.write(target, _stdin_body())
    
    try:
        run_async(do_rcat())
    except CloudLayerException as e:
        fail(e.message)


@app.command()
def ls(
    target: str = typer.Argument(..., help="remote:path of the container"),
    long: bool = typer.Option(False, "-l", "--long", help="Long format with sizes"),
):
    """List the children of a container."""
    async def list_names():
        async with make_router() as router:
            names = await router.list(target)
            if not long:
                for name in names:
                    typer.echo(name)
                return
            
            base = target if target.endswith("/") else target + "/"
            table = Table()
            table.add_column("Type", style="cyan")
            table.add_column("Size", justify="right")
            table.add_column("Name")
            for name in names:
                if name.endswith("/"):
                    table.add_row("D", "-", name)
                    continue
                meta = await router.request(base + name, Method.READ_META)
                size = meta.content_length
                table.add_row("F", "?" if size is None else f"{size:,}", name)
            console.print(table)
    
    try:
        run_async(list_names())
    except CloudLayerException as e:
        fail(e.message)


@app.command()
def mkdir(
    target: str = typer.Argument(..., help="remote:path of the container"),
):
    """Create a container."""
    async def do_mkdir():
        async with make_router() as router:
            container = target if target.endswith("/") else target + "/"
            raise_for_status(await router.request(container, Method.WRITE), target)
    
    try:
        run_async(do_mkdir())
    except CloudLayerException as e:
        fail(e.message)
    console.print(f"[green]Created:[/green] {target}")


@app.command()
def delete(
    target: str = typer.Argument(..., help="remote:path to delete"),
):
    """Delete an object, or a container with everything below it."""
    async def do_delete():
        async with make_router() as router:
            raise_for_status(await router.request(target, Method.DELETE), target)
    
    try:
        run_async(do_delete())
    except CloudLayerException as e:
        fail(e.message)
    console.print(f"[green]Deleted:[/green] {target}")


def main():
    """Entry point."""
    app()


if __name__ == "__main__":
    main()
