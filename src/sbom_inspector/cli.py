"""CLI entry point for sbom-inspector."""

import logging


def main() -> None:
    """Launch the SBOM Inspector TUI."""
    from dotenv import load_dotenv

    load_dotenv()  # Load .env file (e.g. GITHUB_TOKEN)

    from sbom_inspector.config import load_settings

    settings = load_settings()
    # The TUI owns the terminal, so logs go to a file.
    logging.basicConfig(
        filename=settings.log_file,
        level=settings.log_level,
        format="%(asctime)s %(levelname)s %(name)s: %(message)s",
    )

    from sbom_inspector.app import SbomInspectorApp

    app = SbomInspectorApp()
    app.run()


if __name__ == "__main__":
    main()
