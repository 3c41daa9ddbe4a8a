"""CLI commands for global configuration management."""

from typing import Optional

import typer

from hunkstack import global_config
from hunkstack.config import API_KEY_ENV_VARS, AVAILABLE_MODELS, LLMProvider

VALID_PROVIDERS = ", ".join(p.value for p in LLMProvider)

# Subcommand group for configuration management
config_app = typer.Typer(
    name="config",
    help="Manage global hunkstack configuration in ~/.hunkstack/",
    add_completion=False,
)


def _parse_provider(provider: str) -> LLMProvider:
    try:
        return LLMProvider(provider.lower())
    except ValueError:
        typer.echo(f"Invalid provider: {provider}", err=True)
        typer.echo(f"Valid providers: {VALID_PROVIDERS}")
        raise typer.Exit(1)


def _mask(api_key: str) -> str:
    return api_key[:8] + "..." + api_key[-4:] if len(api_key) > 12 else "***"


@config_app.command("show")
def config_show() -> None:
    """Show current global configuration."""
    try:
        if not global_config.is_configured():
            typer.echo("No configuration found. Run 'hunkstack config set-provider' to set up.")
            return

        config = global_config.load_global_config()
        provider_str = config.get("provider")

        typer.echo("Current hunkstack configuration (~/.hunkstack/config.yaml):")
        typer.echo()
        typer.echo(f"  Provider: {provider_str or 'not set'}")
        typer.echo(f"  Model: {config.get('model', 'not set')}")
        typer.echo(f"  Max Tokens: {config.get('max_tokens', 4096)}")
        typer.echo(f"  Temperature: {config.get('temperature', 0.3)}")

        instructions = (config.get("compose") or {}).get("custom_instructions")
        if instructions:
            typer.echo(f"  Compose Instructions: {instructions}")
        typer.echo()

        if provider_str:
            try:
                env_var = API_KEY_ENV_VARS[LLMProvider(provider_str)]
            except ValueError:
                return
            api_key = global_config.get_credential(env_var)
            typer.echo(f"  API Key ({env_var}): {_mask(api_key) if api_key else 'not set'}")

    except global_config.GlobalConfigError as e:
        typer.echo(f"Error reading configuration: {e}", err=True)
        raise typer.Exit(1)


@config_app.command("set-key")
def config_set_key(
    provider: str = typer.Argument(..., help=f"Provider name ({VALID_PROVIDERS})"),
) -> None:
    """Set or update an API key for a provider."""
    llm_provider = _parse_provider(provider)
    env_var = API_KEY_ENV_VARS[llm_provider]

    typer.echo(f"Setting API key for {llm_provider.value}")
    api_key = typer.prompt(f"Enter your {llm_provider.value} API key", hide_input=True)

    try:
        global_config.save_credential(env_var, api_key)
    except global_config.GlobalConfigError as e:
        typer.echo(f"Error: {e}", err=True)
        raise typer.Exit(1)

    typer.echo(f"✓ API key saved for {llm_provider.value}")


@config_app.command("set-provider")
def config_set_provider(
    provider: str = typer.Argument(..., help=f"Provider name ({VALID_PROVIDERS})"),
    model: Optional[str] = typer.Option(
        None,
        "--model",
        "-m",
        help="Model name (optional, will prompt if not provided)",
    ),
) -> None:
    """Set the active LLM provider and model."""
    llm_provider = _parse_provider(provider)
    models = AVAILABLE_MODELS[llm_provider]

    if not model:
        typer.echo(f"Available models for {llm_provider.value}:")
        for i, m in enumerate(models, 1):
            typer.echo(f"  {i}. {m}")

        model_choice = typer.prompt(f"Select a model (1-{len(models)})", type=int, default=1)
        if model_choice < 1 or model_choice > len(models):
            typer.echo("Invalid choice. Aborting.", err=True)
            raise typer.Exit(1)
        model = models[model_choice - 1]
    elif model not in models:
        typer.echo(f"Warning: {model} is not in the list of known models for {llm_provider.value}")
        if not typer.confirm("Continue anyway?", default=False):
            raise typer.Exit(0)

    try:
        global_config.set_provider_and_model(llm_provider, model)
    except global_config.GlobalConfigError as e:
        typer.echo(f"Error: {e}", err=True)
        raise typer.Exit(1)

    typer.echo(f"✓ Provider set to: {llm_provider.value}")
    typer.echo(f"✓ Model set to: {model}")


@config_app.command("set-instructions")
def config_set_instructions(
    instructions: Optional[str] = typer.Argument(
        None,
        help="Default guidance for AI grouping; omit to clear it",
    ),
) -> None:
    """Set the default instructions passed to AI grouping."""
    try:
        global_config.set_custom_instructions(instructions)
    except global_config.GlobalConfigError as e:
        typer.echo(f"Error: {e}", err=True)
        raise typer.Exit(1)

    if instructions:
        typer.echo("✓ Compose instructions saved")
    else:
        typer.echo("✓ Compose instructions cleared")


@config_app.command("list-providers")
def config_list_providers() -> None:
    """List all available LLM providers."""
    typer.echo("Available LLM providers:")
    typer.echo()
    for provider in LLMProvider:
        typer.echo(f"  • {provider.value}")
    typer.echo()
    typer.echo("Use 'hunkstack config list-models <provider>' to see available models.")


@config_app.command("list-models")
def config_list_models(
    provider: Optional[str] = typer.Argument(
        None,
        help="Provider name (optional, shows all if not provided)",
    ),
) -> None:
    """List available models for a provider (or all providers)."""
    providers = [_parse_provider(provider)] if provider else list(LLMProvider)

    for llm_provider in providers:
        typer.echo(f"{llm_provider.value}:")
        for model in AVAILABLE_MODELS[llm_provider]:
            typer.echo(f"  • {model}")
        typer.echo()
