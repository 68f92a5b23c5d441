#!/usr/bin/env python3
"""Interactive chat CLI that renders streamed agent output chunks."""

import json
import sys

import httpx
from rich.console import Console
from rich.markup import escape
from rich.panel import Panel
from rich.prompt import Prompt


class ChatCLI:
    """Interactive chat interface for the agent service."""

    def __init__(self, base_url: str = "http://localhost:8000"):
        """Initialize chat CLI."""
        self.base_url = base_url
        self.console = Console()
        self.client = httpx.Client(timeout=None)

    def start(self) -> None:
        """Start the interactive chat session."""
        self.console.print(
            Panel.fit(
                "[bold blue]streamagent - Interactive Chat[/bold blue]\n"
                "Each message starts a fresh conversation.\n"
                "Commands: /quit",
                border_style="blue",
            )
        )

        if not self._test_connection():
            self.console.print(f"[red]Cannot connect to the service at {self.base_url}.[/red]")
            return

        try:
            while True:
                user_input = Prompt.ask("\n[bold cyan]You[/bold cyan]")

                if user_input.lower() in ["/quit", "/exit", "quit", "exit"]:
                    break
                if user_input.strip() == "":
                    continue

                self._stream_conversation(user_input)

        except KeyboardInterrupt:
            pass
        finally:
            self.console.print("\n[yellow]Goodbye![/yellow]")
            self.client.close()

    def _test_connection(self) -> bool:
        """Test connection to the service."""
        try:
            response = self.client.get(f"{self.base_url}/health")
            return response.status_code == 200
        except httpx.HTTPError:
            return False

    def _stream_conversation(self, message: str) -> None:
        """Send a message and render chunks as they arrive."""
        try:
            with self.client.stream("POST", f"{self.base_url}/conversation", json={"message": message}) as response:
                if response.status_code != 200:
                    response.read()
                    self.console.print(f"[red]API Error: {response.status_code} - {response.text}[/red]")
                    return
                for line in response.iter_lines():
                    if line.strip():
                        self._render_chunk(json.loads(line))
        except httpx.HTTPError as e:
            self.console.print(f"[red]Connection error: {e}[/red]")
        self.console.print()

    def _render_chunk(self, chunk: dict) -> None:
        chunk_type = chunk.get("type")
        if chunk_type == "new_iteration":
            self.console.print(f"\n[dim]--- iteration {chunk['iteration']} ---[/dim]")
        elif chunk_type == "text":
            self.console.print(chunk["content"], end="", markup=False, highlight=False)
        elif chunk_type == "tool_call_request":
            self.console.print(f"\n[yellow]> {escape(chunk['name'])}({escape(chunk['arguments'])})[/yellow]")
        elif chunk_type == "tool_call_response":
            self.console.print(f"[green]< {escape(chunk['result'][:500])}[/green]", highlight=False)
        elif chunk_type == "error":
            self.console.print(f"\n[red]{chunk['message']}[/red]")


def main():
    """Main entry point for the chat CLI."""
    base_url = sys.argv[1] if len(sys.argv) > 1 else "http://localhost:8000"

    chat = ChatCLI(base_url)
    chat.start()


if __name__ == "__main__":
    main()
