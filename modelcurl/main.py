"""
Gradio application entry point for modelcurl.

CLI commands:
    modelcurl          - Launch the Gradio UI
    modelcurl-cli      - Headless commands (see modelcurl.cli)
"""

import inspect
import logging

import gradio as gr
from dotenv import load_dotenv

from modelcurl import state
from modelcurl.config import get_gradio_port
from modelcurl.ui import create_app
from modelcurl.ui_helpers import CUSTOM_CSS

# Load environment variables from .env file
load_dotenv()


def run():
    """Entry point for the application."""
    logging.basicConfig(
        level=logging.INFO,
        format="%(asctime)s %(levelname)s %(name)s: %(message)s",
    )
    state.initialize()

    app = create_app()
    port = get_gradio_port()

    # Gradio 6.x moved theme/css from Blocks() to launch()
    # Gradio 5.x had them on Blocks() - detect and adapt
    launch_params = inspect.signature(gr.Blocks.launch).parameters

    launch_kwargs = {
        "server_name": "127.0.0.1",
        "server_port": port,
        "share": False,
    }

    # Add theme/css only if launch() accepts them (Gradio 6+)
    if "theme" in launch_params:
        launch_kwargs["theme"] = gr.themes.Soft()
        launch_kwargs["css"] = CUSTOM_CSS

    app.launch(**launch_kwargs)


if __name__ == "__main__":
    run()
