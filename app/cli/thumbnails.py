"""
CLI tool for registering attachments and generating image sizes.

Usage:
    python -m app.cli sizes
    python -m app.cli register 2024/05/photo.jpg
    python -m app.cli show 42
    python -m app.cli ensure 42 --size medium
    python -m app.cli ensure 42 --width 150 --height 150
    python -m app.cli regenerate 42
"""
import sys
import argparse
from typing import List, Optional

from app.api.deps import get_app_settings, get_image_service, get_size_registry
from app.core.exceptions import ThumbnailsException, ValidationException
from app.core.logging import setup_logging
from app.models.domain import NamedSize, Resized, parse_size_spec


def list_sizes():
    """List all registered image sizes."""
    registry = get_size_registry()

    print(f"\n{'Size':<20} {'Width':<8} {'Height':<8} {'Crop':<6}")
    print("=" * 44)
    for preset in registry:
        crop = 'Yes' if preset.crop else 'No'
        print(f"{preset.name:<20} {preset.width:<8} {preset.height:<8} {crop:<6}")

    print(f"\nTotal: {len(registry)} size(s)")


def register(file: str):
    """Register an image under the uploads directory."""
    service = get_image_service()
    attachment_id = service.register_attachment(file)
    print(f"Registered attachment {attachment_id}: {file}")


def show(attachment_id: int):
    """Show stored metadata for an attachment."""
    service = get_image_service()
    metadata = service.get_metadata(attachment_id)

    print(f"\nAttachment {attachment_id}: {metadata.get('file')} ({metadata.get('width')}x{metadata.get('height')})")
    print(f"URL: {service.repository.attachment_url(attachment_id)}")
    sizes = metadata.get("sizes") or {}
    if not sizes:
        print("No generated sizes.")
        return

    print(f"\n{'Size':<20} {'File':<40} {'Dimensions':<12}")
    print("=" * 72)
    for name, entry in sorted(sizes.items()):
        dimensions = f"{entry.get('width')}x{entry.get('height')}"
        print(f"{name:<20} {entry.get('file', ''):<40} {dimensions:<12}")


def ensure(attachment_id: int, size: Optional[str], width: Optional[int], height: Optional[int]):
    """Generate one size for an attachment if it is missing."""
    if size and (width is not None or height is not None):
        raise ValidationException("pass either --size or --width/--height, not both")
    if size:
        spec = NamedSize(size)
    elif width is not None and height is not None:
        spec = parse_size_spec([width, height])
    else:
        raise ValidationException("--size or both --width and --height are required")

    service = get_image_service()
    service.get_metadata(attachment_id)
    outcome = service.ensurer.ensure(attachment_id, spec)

    if isinstance(outcome, Resized):
        print(f"{outcome.url} ({outcome.width}x{outcome.height})")
    else:
        print("Nothing to do: size already current, unknown, or could not be generated.")


def regenerate(attachment_id: int):
    """Generate every registered size that is missing or stale for an attachment."""
    service = get_image_service()
    service.get_metadata(attachment_id)

    generated = 0
    for name in get_size_registry().names():
        outcome = service.ensurer.ensure(attachment_id, NamedSize(name))
        if isinstance(outcome, Resized):
            generated += 1
            print(f"{name:<20} {outcome.url} ({outcome.width}x{outcome.height})")

    print(f"\nGenerated {generated} size(s) for attachment {attachment_id}")


def main(argv: Optional[List[str]] = None) -> int:
    """Main CLI entry point."""
    parser = argparse.ArgumentParser(
        description="Register images and generate missing sizes",
        formatter_class=argparse.RawDescriptionHelpFormatter,
        epilog="""
Examples:
  # Register an uploaded file (path relative to the uploads directory)
  python -m app.cli register 2024/05/photo.jpg

  # Generate a named size, or an exact cropped size
  python -m app.cli ensure 1 --size medium
  python -m app.cli ensure 1 --width 150 --height 150
        """
    )

    subparsers = parser.add_subparsers(dest='command', help='Command to execute')

    subparsers.add_parser('sizes', help='List registered image sizes')

    register_parser = subparsers.add_parser('register', help='Register an uploaded image')
    register_parser.add_argument('file', help='Path relative to the uploads directory')

    show_parser = subparsers.add_parser('show', help='Show attachment metadata')
    show_parser.add_argument('attachment_id', type=int, help='Attachment ID')

    ensure_parser = subparsers.add_parser('ensure', help='Generate a size if it is missing')
    ensure_parser.add_argument('attachment_id', type=int, help='Attachment ID')
    ensure_parser.add_argument('--size', help='Registered size name')
    ensure_parser.add_argument('--width', type=int, help='Exact width (cropped)')
    ensure_parser.add_argument('--height', type=int, help='Exact height (cropped)')

    regenerate_parser = subparsers.add_parser('regenerate', help='Generate all missing or stale sizes')
    regenerate_parser.add_argument('attachment_id', type=int, help='Attachment ID')

    args = parser.parse_args(argv)

    if not args.command:
        parser.print_help()
        return 0

    settings = get_app_settings()
    setup_logging(log_level=settings.log_level, log_dir=settings.logs_dir)

    try:
        if args.command == 'sizes':
            list_sizes()
        elif args.command == 'register':
            register(args.file)
        elif args.command == 'show':
            show(args.attachment_id)
        elif args.command == 'ensure':
            ensure(args.attachment_id, args.size, args.width, args.height)
        elif args.command == 'regenerate':
            regenerate(args.attachment_id)
    except ThumbnailsException as e:
        print(f"\nError: {e.message}", file=sys.stderr)
        return 1

    return 0


if __name__ == '__main__':
    sys.exit(main())
