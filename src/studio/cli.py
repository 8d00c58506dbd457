"""CLI entry point for the creative studio."""

import logging
from enum import Enum
from pathlib import Path
from typing import List, Optional

import typer
import yaml

from . import __version__
from .config import config
from .errors import NotFoundError, RemoteServiceError, StudioError, ValidationError
from .models import ProjectRecord
from .session import SessionController

app = typer.Typer(
    name="studio",
    help="Gemini creative studio: chat, image and video generation with saved projects",
    no_args_is_help=True
)


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
        typer.echo(f"studio version {__version__}")
        raise typer.Exit()


@app.callback()
def main(
    version: Optional[bool] = typer.Option(
        None,
        "--version",
        callback=version_callback,
        is_eager=True,
        help="Show version and exit"
    )
) -> None:
    """Creative Studio - chat, images and videos with Gemini, Imagen and Veo."""
    pass


class Target(str, Enum):
    """Prompt builder targets."""
    IMAGE = "image"
    VIDEO = "video"


def _open_session(project: Optional[str] = None) -> SessionController:
    """Create a session, optionally starting from a saved project."""
    session = SessionController.from_config(config, confirm=typer.confirm)
    if project:
        try:
            record = session.load_project(project)
        except NotFoundError as e:
            typer.echo(f"❌ {e}")
            raise typer.Exit(1)
        typer.echo(f"📁 Project: {record.name}")
    return session


def _gemini_client():
    from .services.gemini import GeminiClient

    try:
        config.validate_required()
        return GeminiClient(settings=config)
    except ValueError as e:
        typer.echo(f"❌ Configuration error: {e}")
        raise typer.Exit(1)


def _save(session: SessionController, name: Optional[str]) -> None:
    if not name:
        return
    try:
        record = session.save_current_as_project(name)
    except StudioError as e:
        typer.echo(f"❌ Could not save project: {e}")
        raise typer.Exit(1)
    typer.echo(f"💾 Saved project '{record.name}' ({record.id})")


def _format_time(record: ProjectRecord) -> str:
    return record.created_at.strftime("%Y-%m-%d %H:%M")


def _write_output(data: bytes, output: Path) -> None:
    output.parent.mkdir(parents=True, exist_ok=True)
    output.write_bytes(data)


ProjectOption = typer.Option(None, "--project", "-p", help="Start from a saved project ID")
SaveOption = typer.Option(None, "--save", "-s", help="Save the session as a new project with this name")
VerboseOption = typer.Option(False, "--verbose", "-v", help="Enable verbose logging")


@app.command()
def projects() -> None:
    """List saved projects, newest first."""
    session = SessionController.from_config(config)
    records = session.list_projects()
    if not records:
        typer.echo("No saved projects.")
        return

    typer.echo(f"📁 {len(records)} project(s):")
    for record in records:
        typer.echo(f"   {record.id}  {_format_time(record)}  {record.name}")


@app.command()
def show(
    project_id: str = typer.Argument(..., help="Project ID"),
) -> None:
    """Show a saved project's contents."""
    session = SessionController.from_config(config)
    try:
        record = session.projects.load(project_id)
    except NotFoundError as e:
        typer.echo(f"❌ {e}")
        raise typer.Exit(1)

    state = record.state
    typer.echo(f"📁 Project: {record.name}")
    typer.echo(f"   ID: {record.id}")
    typer.echo(f"   Saved: {_format_time(record)}")
    typer.echo(f"   Active tab: {state.active_tab}")
    typer.echo(f"\n💬 Assistant: {len(state.assistant.messages)} message(s)")

    image = state.image_studio
    typer.echo(f"\n🎨 Image studio ({image.mode}):")
    if image.history.cursor == -1:
        typer.echo("   History: empty")
    else:
        typer.echo(f"   History: {len(image.history)} image(s), current #{image.history.cursor + 1}")
    typer.echo(f"   Combine images: {len(image.combine_images)}")
    typer.echo(f"   Custom clothing: {len(image.custom_clothing)}, custom locations: {len(image.custom_locations)}")
    if image.generate_prompt:
        preview = image.generate_prompt[:70] + "..." if len(image.generate_prompt) > 70 else image.generate_prompt
        typer.echo(f"   Prompt: {preview}")

    video = state.video_studio
    typer.echo(f"\n🎬 Video studio ({video.mode}):")
    typer.echo(f"   Aspect ratio: {video.aspect_ratio}")
    if video.analysis_result:
        typer.echo(f"   Analysis: {video.analysis_result[:70]}")
    if video.generation_prompt:
        typer.echo(f"   Prompt: {video.generation_prompt[:70]}")


@app.command()
def delete(
    project_id: str = typer.Argument(..., help="Project ID"),
    yes: bool = typer.Option(False, "--yes", "-y", help="Don't ask for confirmation"),
) -> None:
    """Delete a saved project."""
    session = SessionController.from_config(config)
    if not yes and not typer.confirm(f"Delete project {project_id}?"):
        typer.echo("Cancelled.")
        raise typer.Exit()
    session.delete_project(project_id)
    typer.echo(f"🗑️  Deleted {project_id}")


@app.command("export")
def export_project(
    project_id: str = typer.Argument(..., help="Project ID"),
    output: Path = typer.Option(
        Path("project.yaml"),
        "--output",
        "-o",
        help="Output YAML file"
    ),
) -> None:
    """Export a saved project to a YAML file."""
    session = SessionController.from_config(config)
    try:
        record = session.projects.load(project_id)
        output.parent.mkdir(parents=True, exist_ok=True)
        record.to_yaml(output)
    except (NotFoundError, OSError) as e:
        typer.echo(f"❌ Error exporting project: {e}")
        raise typer.Exit(1)
    typer.echo(f"✅ Exported '{record.name}' to {output}")


@app.command("import")
def import_project(
    path: Path = typer.Argument(..., help="Project YAML file", exists=True, dir_okay=False),
    name: Optional[str] = typer.Option(None, "--name", "-n", help="Name for the imported project"),
) -> None:
    """Import a project from a YAML file as a new saved project."""
    try:
        record = ProjectRecord.from_yaml(path)
    except (OSError, ValueError, yaml.YAMLError) as e:
        typer.echo(f"❌ Error reading {path}: {e}")
        raise typer.Exit(1)

    with SessionController.from_config(config) as session:
        session.tree.replace(record.state)
        _save(session, name or record.name)


@app.command()
def prompt(
    target: Target = typer.Option(Target.IMAGE, "--target", "-t", help="Build an image or a video prompt"),
    job_title: str = typer.Option("", "--job-title", help="Who the subject is"),
    age: str = typer.Option("", "--age", help="Approximate age"),
    features: str = typer.Option("", "--features", help="Facial features to add or modify"),
    address: str = typer.Option("", "--address", help="Address to influence the background"),
    clothing: str = typer.Option("", "--clothing", help="Clothing option or custom clothing name"),
    location: str = typer.Option("", "--location", help="Location category"),
    detail: str = typer.Option("", "--detail", help="Location detail"),
    horizontal: int = typer.Option(5, "--horizontal", min=1, max=9, help="Horizontal camera offset (1-9)"),
    vertical: int = typer.Option(5, "--vertical", min=1, max=9, help="Vertical camera angle (1-9)"),
    project: Optional[str] = ProjectOption,
    save: Optional[str] = SaveOption,
) -> None:
    """Build a prompt from persona, clothing, location and camera settings."""
    from .prompts import CLOTHING_OPTIONS, LOCATION_OPTIONS
    from .tabs import ImageStudio, VideoStudio

    fields = dict(
        job_title=job_title,
        age=age,
        facial_features=features,
        address=address,
        selected_clothing=clothing,
        selected_location=location,
        selected_location_detail=detail,
        camera_horizontal=horizontal,
        camera_vertical=vertical,
    )
    if clothing and clothing not in CLOTHING_OPTIONS:
        typer.echo(f"   Note: '{clothing}' is not a preset; looking for custom clothing")
    if location and detail and detail not in LOCATION_OPTIONS.get(location, {}):
        typer.echo(f"   Note: '{location} / {detail}' is not a preset; looking for a custom location")

    with _open_session(project) as session:
        # The builder never calls the service
        if target == Target.IMAGE:
            studio = ImageStudio(session.tree, client=None, history_limit=config.history_limit)
        else:
            studio = VideoStudio(session.tree, client=None, settings=config)
        studio.set_builder(**fields)
        typer.echo(studio.build_prompt())
        _save(session, save)


@app.command()
def chat(
    message: str = typer.Argument("", help="Message to send"),
    image: Optional[Path] = typer.Option(None, "--image", "-i", help="Image to analyze", exists=True, dir_okay=False),
    think: bool = typer.Option(False, "--think", help="Use thinking mode for complex questions"),
    latitude: Optional[float] = typer.Option(None, "--lat", help="Latitude for Google Maps grounding"),
    longitude: Optional[float] = typer.Option(None, "--lng", help="Longitude for Google Maps grounding"),
    project: Optional[str] = ProjectOption,
    save: Optional[str] = SaveOption,
    verbose: bool = VerboseOption,
) -> None:
    """Chat with the assistant.

    Example:
        studio chat "Find a quiet cafe nearby" --lat 55.75 --lng 37.62
    """
    from .media.files import load_image
    from .services.gemini import GeoLocation
    from .tabs import AssistantTab

    setup_logging(verbose)
    client = _gemini_client()
    location = None
    if latitude is not None and longitude is not None:
        location = GeoLocation(latitude=latitude, longitude=longitude)

    with _open_session(project) as session:
        session.set_active_tab("assistant")
        tab = AssistantTab(session.tree, client)
        try:
            reply = tab.send(
                message,
                image=load_image(image) if image else None,
                thinking_mode=think,
                use_maps=location is not None,
                location=location,
            )
        except ValidationError as e:
            typer.echo(f"❌ {e}")
            raise typer.Exit(1)
        except RemoteServiceError as e:
            typer.echo(f"❌ {e}")
            _save(session, save)
            raise typer.Exit(1)

        typer.echo(reply.text)
        links = [chunk.link for chunk in reply.grounding_chunks if chunk.link]
        if links:
            typer.echo("\n📍 Sources:")
            for title, uri in links:
                typer.echo(f"   • {title}: {uri}")
        _save(session, save)


@app.command()
def image(
    prompt_text: str = typer.Argument(..., metavar="PROMPT", help="Text description of the image"),
    reference: Optional[Path] = typer.Option(
        None, "--reference", "-r", help="Reference photo to generate from", exists=True, dir_okay=False
    ),
    aspect_ratio: str = typer.Option(
        "1:1",
        "--aspect-ratio",
        "-a",
        help="Image aspect ratio (1:1, 16:9, 9:16, 4:3, 3:4)"
    ),
    output: Path = typer.Option(Path("output/image.png"), "--output", "-o", help="Output image file"),
    project: Optional[str] = ProjectOption,
    save: Optional[str] = SaveOption,
    verbose: bool = VerboseOption,
) -> None:
    """Generate an image, optionally from a reference photo.

    Example:
        studio image "Portrait in a sunlit office" --reference me.jpg
    """
    from .media.files import load_image
    from .tabs import ImageStudio

    setup_logging(verbose)
    client = _gemini_client()
    typer.echo(f"🎨 Generating image")
    typer.echo(f"   Prompt: {prompt_text[:70]}...")

    with _open_session(project) as session:
        session.set_active_tab("image")
        studio = ImageStudio(session.tree, client, history_limit=config.history_limit)
        try:
            if reference:
                studio.load_reference(load_image(reference))
            studio.set_mode("generate")
            studio.set_aspect_ratio(aspect_ratio)
            studio.set_prompt(generate=prompt_text)
            artifact = studio.generate()
        except (StudioError, ValueError) as e:
            typer.echo(f"❌ Generation failed: {e}")
            raise typer.Exit(1)

        _write_output(artifact.to_bytes(), output)
        typer.echo(f"✅ Image saved: {output}")
        _save(session, save)


@app.command()
def edit(
    source: Path = typer.Argument(..., help="Image to edit", exists=True, dir_okay=False),
    instruction: str = typer.Argument(..., help="Edit instruction"),
    output: Path = typer.Option(Path("output/edited.png"), "--output", "-o", help="Output image file"),
    project: Optional[str] = ProjectOption,
    save: Optional[str] = SaveOption,
    verbose: bool = VerboseOption,
) -> None:
    """Edit an image with a text instruction."""
    from .media.files import load_image
    from .tabs import ImageStudio

    setup_logging(verbose)
    client = _gemini_client()

    with _open_session(project) as session:
        session.set_active_tab("image")
        studio = ImageStudio(session.tree, client, history_limit=config.history_limit)
        try:
            studio.load_reference(load_image(source))
            studio.set_prompt(edit=instruction)
            artifact = studio.edit()
        except (StudioError, ValueError) as e:
            typer.echo(f"❌ Edit failed: {e}")
            raise typer.Exit(1)

        _write_output(artifact.to_bytes(), output)
        typer.echo(f"✅ Image saved: {output}")
        _save(session, save)


@app.command()
def combine(
    prompt_text: str = typer.Argument(..., metavar="PROMPT", help="How to combine the images"),
    images: List[Path] = typer.Argument(..., help="Two or three images", exists=True, dir_okay=False),
    output: Path = typer.Option(Path("output/combined.png"), "--output", "-o", help="Output image file"),
    project: Optional[str] = ProjectOption,
    save: Optional[str] = SaveOption,
    verbose: bool = VerboseOption,
) -> None:
    """Combine two or three images into one."""
    from .media.files import load_image
    from .tabs import ImageStudio

    setup_logging(verbose)
    client = _gemini_client()

    with _open_session(project) as session:
        session.set_active_tab("image")
        studio = ImageStudio(session.tree, client, history_limit=config.history_limit)
        try:
            studio.set_mode("combine")
            added = studio.add_combine_images([load_image(path) for path in images])
            if len(added) < len(images):
                typer.echo(f"⚠️  Only the first {len(added)} image(s) were used")
            studio.set_prompt(combine=prompt_text)
            artifact = studio.combine()
        except (StudioError, ValueError) as e:
            typer.echo(f"❌ Combine failed: {e}")
            raise typer.Exit(1)

        _write_output(artifact.to_bytes(), output)
        typer.echo(f"✅ Image saved: {output}")
        _save(session, save)


@app.command()
def video(
    image_path: Path = typer.Option(
        ..., "--image", "-i", help="Reference image of the subject", exists=True, dir_okay=False
    ),
    prompt_text: Optional[str] = typer.Argument(
        None, metavar="[PROMPT]", help="Video prompt (built from the project's settings if omitted)"
    ),
    aspect_ratio: str = typer.Option("9:16", "--aspect-ratio", "-a", help="Video aspect ratio (16:9, 9:16)"),
    output: Path = typer.Option(Path("output/video.mp4"), "--output", "-o", help="Output video file"),
    project: Optional[str] = ProjectOption,
    save: Optional[str] = SaveOption,
    verbose: bool = VerboseOption,
) -> None:
    """Generate a short video from a reference image with Veo."""
    from .media.files import load_image
    from .tabs import VideoStudio

    setup_logging(verbose)
    client = _gemini_client()
    typer.echo("🎬 Generating video with Veo")

    with _open_session(project) as session:
        session.set_active_tab("video")
        studio = VideoStudio(session.tree, client, settings=config)
        try:
            if studio.state.mode != "generate":
                studio.set_mode("generate")
            studio.set_aspect_ratio(aspect_ratio)
            studio.set_image_file(load_image(image_path))
            if prompt_text:
                studio.set_generation_prompt(prompt_text)
            else:
                typer.echo(f"   Prompt: {studio.build_prompt()[:70]}...")
            handle = studio.generate(on_status=lambda message: typer.echo(f"   {message}"))
            _write_output(handle.read_bytes(), output)
        except (StudioError, ValueError) as e:
            typer.echo(f"❌ Video generation failed: {e}")
            raise typer.Exit(1)

        typer.echo(f"✅ Video saved: {output}")
        _save(session, save)


@app.command()
def analyze(
    video_path: Path = typer.Argument(..., help="Video to analyze", exists=True, dir_okay=False),
    question: str = typer.Argument(..., help="What to ask about the video"),
    project: Optional[str] = ProjectOption,
    save: Optional[str] = SaveOption,
    verbose: bool = VerboseOption,
) -> None:
    """Analyze a video by sampling frames and asking Gemini about them."""
    from .media.files import load_video
    from .tabs import VideoStudio

    setup_logging(verbose)
    client = _gemini_client()
    typer.echo(f"🔍 Analyzing {video_path.name}")

    with _open_session(project) as session:
        session.set_active_tab("video")
        studio = VideoStudio(session.tree, client, settings=config)
        try:
            studio.set_mode("analyze")
            studio.set_video_file(load_video(video_path))
            studio.set_analysis_prompt(question)
            result = studio.analyze()
        except (StudioError, ValueError) as e:
            typer.echo(f"❌ Analysis failed: {e}")
            raise typer.Exit(1)

        typer.echo(result)
        _save(session, save)


@app.command()
def info() -> None:
    """Show configuration and storage usage."""
    session = SessionController.from_config(config)
    storage = config.resolved_storage_path
    typer.echo(f"🗂️  Storage: {storage}")
    used = session.projects.storage_bytes()
    typer.echo(f"   Used: {used / 1024:.1f} KiB of {config.storage_quota_bytes / 1024:.0f} KiB")
    typer.echo(f"   Projects: {len(session.list_projects())}")
    typer.echo(f"   API key: {'set' if config.gemini_api_key else 'not set'}")
    typer.echo(f"   Chat model: {config.text_model} (thinking: {config.thinking_model})")
    typer.echo(f"   Image models: {config.image_model}, {config.image_edit_model}")
    typer.echo(f"   Video model: {config.video_model} ({config.video_resolution})")


if __name__ == "__main__":
    app()
