"""Main script for asking the oracle from a terminal, without payment."""

import asyncio
import logging
import sys
from typing import List

from dotenv import load_dotenv
from rich import print, print_json

from .domain.models.verification import VerificationResult
from .domain.services.oracle_service import OracleService, UnknownDomainError
from .infrastructure.dependencies import ServiceContainer


def show_result(result: VerificationResult) -> None:
    """Print a verification result."""
    if result.success:
        print(f"[green]✓ Answered with confidence {result.confidence:.2f}[/green]")
    elif result.safety_triggered:
        print(f"[bold red]Safety rail:[/bold red] {result.message}")
    else:
        print(f"[yellow]✗ {result.error_kind.value}[/yellow]")
        if result.suggestion:
            print(f"[bold]Suggestion:[/bold] {result.suggestion}")
    print_json(result.model_dump_json())


async def ask_once(service: OracleService, domain: str, question: str) -> None:
    print(f"\n[bold yellow]Asking {domain}:[/bold yellow] {question}")
    try:
        result = await service.ask(domain, question)
    except UnknownDomainError:
        print(f"[red]Unknown domain {domain!r}. Choose one of: {', '.join(service.domains)}[/red]")
        return
    except Exception as e:
        print(f"\n[red]Error querying the oracle: {e}[/red]")
        return
    show_result(result)


async def main(argv: List[str]) -> int:
    """Run the oracle CLI."""
    if not argv:
        print("Usage: python -m fact_oracle.main <sports|reddit> [question...]")
        return 2

    domain, question = argv[0], " ".join(argv[1:]).strip()

    container = ServiceContainer()
    service = await container.start()
    try:
        if question:
            await ask_once(service, domain, question)
            return 0

        print("Fact Oracle - sports results and Reddit data")
        print("--------------------------------------------")
        while True:
            try:
                question = input(f"\nAsk the {domain} oracle (or 'quit' to exit): ").strip()
            except EOFError:
                break
            if question.lower() in ('quit', 'exit', 'q'):
                break
            if question:
                await ask_once(service, domain, question)
    finally:
        # Clean up
        await container.shutdown()
    return 0


if __name__ == "__main__":
    load_dotenv()
    logging.basicConfig(
        level=logging.WARNING,
        format='%(asctime)s - %(name)s - %(levelname)s - %(message)s'
    )
    sys.exit(asyncio.run(main(sys.argv[1:])))
