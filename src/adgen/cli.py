"""CLI entry point for the ad generator."""

import asyncio
import logging
from datetime import datetime
from pathlib import Path
from typing import List, Optional

import typer

from . import __version__
from .config import config
from .errors import AdGenError, ConfigurationError, ValidationError
from .models import AdManifest, AspectRatio, EventType, PipelineEvent, PipelineInput, Resolution

app = typer.Typer(
    name="adgen",
    help="Agentic three-scene video ad generator",
    no_args_is_help=True
)

EVENT_ICONS = {
    EventType.SCENE_PLANNING: "🧠",
    EventType.SCENE_PLANNED: "📝",
    EventType.IMAGE_GENERATING: "🎨",
    EventType.IMAGE_COMPLETE: "🖼️ ",
    EventType.VIDEO_SUBMITTED: "🎬",
    EventType.VIDEO_POLLING: "⏳",
    EventType.VIDEO_COMPLETE: "📼",
    EventType.SCENE_COMPLETE: "✅",
    EventType.PIPELINE_COMPLETE: "🏁",
    EventType.ERROR: "❌",
}


def setup_logging(verbose: bool = False) -> None:
    """Configure logging."""
    level = logging.DEBUG if verbose else logging.INFO
    logging.basicConfig(
        level=level,
        format="%(levelname)s: %(message)s",
    )


def version_callback(value: bool) -> None:
    """Print version and exit."""
    if value:
        typer.echo(f"adgen version {__version__}")
        raise typer.Exit()


@app.callback()
def main(
    version: Optional[bool] = typer.Option(
        None,
        "--version",
        "-v",
        callback=version_callback,
        is_eager=True,
        help="Show version and exit"
    )
) -> None:
    """Ad Generator - Turn one concept into a three-scene video ad using AI."""
    pass


def _echo_event(event: PipelineEvent) -> None:
    icon = EVENT_ICONS.get(event.type, "•")
    prefix = f"[{event.scene}/3]" if event.scene else "[-]"
    typer.echo(f"{icon} {prefix} {event.message}")
    data = event.data
    if data is None:
        return
    if event.type == EventType.SCENE_PLANNED and data.video_prompt:
        preview = data.video_prompt[:70] + "..." if len(data.video_prompt) > 70 else data.video_prompt
        typer.echo(f"      → {preview}")
    if event.type == EventType.SCENE_COMPLETE:
        if data.image_url:
            typer.echo(f"      image: {data.image_url}")
        typer.echo(f"      video: {data.video_url}")


@app.command()
def generate(
    concept: str = typer.Argument(
        ...,
        help="Product or service concept for the ad"
    ),
    duration: int = typer.Option(
        6,
        "--duration",
        "-d",
        help="Duration of each scene in seconds",
        min=1,
        max=15
    ),
    aspect_ratio: AspectRatio = typer.Option(
        AspectRatio.WIDESCREEN,
        "--aspect-ratio",
        "-a",
        help="Output aspect ratio"
    ),
    resolution: Resolution = typer.Option(
        Resolution.HD,
        "--resolution",
        "-r",
        help="Output resolution"
    ),
    output: Path = typer.Option(
        Path("ad.yaml"),
        "--output",
        "-o",
        help="Output manifest file path"
    ),
    verbose: bool = typer.Option(
        False,
        "--verbose",
        help="Enable verbose logging"
    ),
) -> None:
    """Generate a three-scene video ad from a concept.

    Example:
        adgen generate "sneaker launch" --duration 6 --aspect-ratio 16:9
    """
    from .pipeline import PipelineController, parse_input

    setup_logging(verbose)

    try:
        config.validate_required()
        request = parse_input({
            "concept": concept,
            "duration": duration,
            "aspect_ratio": aspect_ratio.value,
            "resolution": resolution.value,
        })
    except (ConfigurationError, ValidationError) as e:
        typer.echo(f"❌ {e}")
        raise typer.Exit(1)

    typer.echo(f"🎬 Generating ad: {request.concept}")
    typer.echo(f"   {request.duration}s per scene, {request.aspect_ratio.value}, {request.resolution.value}")

    async def emit(event: PipelineEvent) -> None:
        _echo_event(event)

    async def run_pipeline():
        controller = PipelineController.from_config(config)
        try:
            return await controller.run(request, emit)
        finally:
            await controller.aclose()

    try:
        results = asyncio.run(run_pipeline())
    except AdGenError as e:
        typer.echo(f"❌ {e}")
        raise typer.Exit(1)

    if results is None:
        raise typer.Exit(1)

    manifest = AdManifest(request=request, scenes=list(results), generated_at=datetime.now())
    try:
        output.parent.mkdir(parents=True, exist_ok=True)
        manifest.to_yaml(output)
        typer.echo(f"\n✅ Manifest saved: {output}")
    except OSError as e:
        typer.echo(f"❌ Error saving manifest: {e}")
        raise typer.Exit(1)


@app.command()
def prompts(
    master_prompt: str = typer.Argument(
        ...,
        help="Master concept for the ad"
    ),
    images: Optional[List[str]] = typer.Option(
        None,
        "--image",
        "-i",
        help="Reference image URL or data URI (repeat up to 3 times)"
    ),
    verbose: bool = typer.Option(
        False,
        "--verbose",
        help="Enable verbose logging"
    ),
) -> None:
    """Draft three clip prompts (hook, showcase, closer) from a concept."""
    from .agents import ClipPromptInput, ClipPromptWriter
    from .services.xai import XAIClient

    setup_logging(verbose)

    try:
        config.validate_required()
    except ConfigurationError as e:
        typer.echo(f"❌ {e}")
        raise typer.Exit(1)

    async def write():
        async with XAIClient() as client:
            writer = ClipPromptWriter(client)
            typer.echo(f"   Using model: {writer.model}")
            return await writer.run(ClipPromptInput(master_prompt=master_prompt, images=images or []))

    try:
        result = asyncio.run(write())
    except (AdGenError, ValueError) as e:
        typer.echo(f"❌ Error generating prompts: {e}")
        raise typer.Exit(1)

    for i, prompt in enumerate(result.prompts):
        image_note = ""
        if result.image_assignment is not None:
            image_note = f" (image {result.image_assignment[i] + 1})"
        typer.echo(f"\n📽️  Clip {i + 1}{image_note}:")
        typer.echo(f"   {prompt}")


@app.command()
def status(
    manifest_path: Path = typer.Option(
        Path("ad.yaml"),
        "--manifest",
        "-m",
        help="Path to ad manifest YAML file",
        exists=False,
        file_okay=True,
        dir_okay=False
    )
) -> None:
    """Show a generated ad's manifest."""
    if not manifest_path.exists():
        typer.echo(f"❌ No manifest found at {manifest_path}")
        typer.echo("   Run 'adgen generate' to create one")
        raise typer.Exit(1)

    try:
        manifest = AdManifest.from_yaml(manifest_path)
    except Exception as e:
        typer.echo(f"❌ Error loading manifest: {e}")
        raise typer.Exit(1)

    request: PipelineInput = manifest.request
    typer.echo(f"📁 Concept: {request.concept}")
    typer.echo(f"   Aspect ratio: {request.aspect_ratio.value}")
    typer.echo(f"   Resolution: {request.resolution.value}")
    typer.echo(f"   Scenes: {len(manifest.scenes)}")
    typer.echo(f"   Total duration: {manifest.total_duration:.1f}s")
    if manifest.generated_at:
        typer.echo(f"   Generated: {manifest.generated_at:%Y-%m-%d %H:%M}")

    typer.echo("\n📽️  Scenes:")
    for scene in manifest.scenes:
        typer.echo(f"   ✅ Scene {scene.scene_number}: {scene.method.value}")
        prompt = scene.decision.video_prompt
        prompt_preview = prompt[:60] + "..." if len(prompt) > 60 else prompt
        typer.echo(f"      → {prompt_preview}")
        typer.echo(f"      {scene.video_url}")


@app.command()
def serve(
    host: str = typer.Option("0.0.0.0", "--host", help="Bind address"),
    port: int = typer.Option(8000, "--port", "-p", help="Port to listen on"),
    reload: bool = typer.Option(False, "--reload", help="Reload on code changes"),
) -> None:
    """Start the HTTP server that streams pipeline runs."""
    from .api import start_server

    setup_logging()
    try:
        config.validate_required()
        config.validate_storage()
    except ConfigurationError as e:
        typer.echo(f"❌ Configuration error: {e}")
        raise typer.Exit(1)

    typer.echo(f"🚀 Serving on http://{host}:{port}")
    start_server(host=host, port=port, reload=reload)


if __name__ == "__main__":
    app()
