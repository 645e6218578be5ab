"""
Gradio UI definition for modelcurl.

Left column: endpoint picker and editor. Right column: parameters, prompt,
streamed response, metrics and reasoning output.
"""

import inspect

import gradio as gr

from modelcurl import handlers
from modelcurl.config import (
    DEFAULT_MAX_TOKENS,
    DEFAULT_STREAM,
    DEFAULT_SYSTEM_PROMPT,
    DEFAULT_TEMPERATURE,
    ReasoningEffort,
)
from modelcurl.ui_helpers import CUSTOM_CSS


def create_app() -> gr.Blocks:
    """Create the Gradio application."""

    # Gradio 5.x: theme/css on Blocks(); Gradio 6.x: on launch()
    blocks_params = inspect.signature(gr.Blocks).parameters
    blocks_kwargs = {"title": "ModelCurl"}

    if "theme" in blocks_params:
        blocks_kwargs["theme"] = gr.themes.Soft()
        blocks_kwargs["css"] = CUSTOM_CSS

    with gr.Blocks(**blocks_kwargs) as app:

        gr.Markdown("# ModelCurl")

        with gr.Row():

            # ─────────────────────────────────────────────────────────
            # ENDPOINTS
            # ─────────────────────────────────────────────────────────

            with gr.Column(scale=1):
                endpoint_select = gr.Dropdown(label="Endpoint", choices=[], value=None)
                with gr.Row():
                    new_btn = gr.Button("➕ New", size="sm")
                    duplicate_btn = gr.Button("📄 Duplicate", size="sm")
                    delete_btn = gr.Button("🗑️ Delete", size="sm", variant="stop")

                with gr.Accordion("Endpoint settings", open=True):
                    endpoint_id = gr.Textbox(visible=False)
                    name_input = gr.Textbox(label="Name *", placeholder="My OpenAI endpoint")
                    url_input = gr.Textbox(
                        label="Base URL *", placeholder="https://api.openai.com/v1"
                    )
                    api_key_input = gr.Textbox(label="API Key", type="password")
                    headers_input = gr.Textbox(
                        label="Custom headers (one 'Name: value' per line)", lines=3
                    )
                    model_input = gr.Dropdown(
                        label="Model", choices=[], value=None, allow_custom_value=True
                    )
                    with gr.Row():
                        fetch_btn = gr.Button("🔄 Fetch models", size="sm")
                        test_btn = gr.Button("🔌 Test", size="sm")
                        save_btn = gr.Button("💾 Save", size="sm", variant="primary")
                    endpoint_status = gr.Textbox(label="Status", interactive=False)

            # ─────────────────────────────────────────────────────────
            # REQUEST & RESPONSE
            # ─────────────────────────────────────────────────────────

            with gr.Column(scale=2):
                with gr.Row(elem_classes="config-row"):
                    temperature = gr.Slider(
                        label="Temperature", minimum=0.0, maximum=2.0, step=0.1,
                        value=DEFAULT_TEMPERATURE,
                    )
                    max_tokens = gr.Number(
                        label="Max Tokens", value=DEFAULT_MAX_TOKENS, minimum=1, precision=0
                    )
                    stream = gr.Checkbox(label="Stream", value=DEFAULT_STREAM)

                with gr.Accordion("Reasoning", open=False, visible=False) as reasoning_group:
                    effort = gr.Dropdown(
                        label="Reasoning Effort",
                        choices=[e.value for e in ReasoningEffort],
                        value=ReasoningEffort.MEDIUM.value,
                    )
                    max_completion = gr.Number(
                        label="Max Completion Tokens", value=2048, minimum=1, precision=0
                    )
                    thinking = gr.Checkbox(label="Enable Thinking Mode", value=False)
                    budget = gr.Number(
                        label="Thinking Budget (tokens)", value=None, minimum=1, precision=0,
                        info="Leave empty for the provider default",
                    )

                system_prompt = gr.Textbox(
                    label="System Prompt (optional)", value=DEFAULT_SYSTEM_PROMPT, lines=2
                )
                prompt = gr.Textbox(
                    label="User Message", placeholder="Enter your prompt here...", lines=4
                )
                with gr.Row():
                    send_btn = gr.Button("⚡ Send", variant="primary")
                    clear_btn = gr.Button("Clear")

                with gr.Row():
                    error_line = gr.Markdown(value="", elem_id="error-line")
                    dismiss_btn = gr.Button("✕", size="sm", scale=0)

                metrics_panel = gr.Markdown(value="", elem_id="metrics-panel")
                response_output = gr.Markdown(value="", elem_id="response-output")
                reasoning_output = gr.Markdown(value="")

                with gr.Accordion("Export", open=False):
                    with gr.Row():
                        export_md_btn = gr.Button("Export Markdown")
                        export_json_btn = gr.Button("Export JSON")
                    export_preview = gr.Textbox(label="Export Preview", lines=10)

                with gr.Accordion("History", open=False):
                    history_table = gr.Dataframe(
                        headers=["Time", "Endpoint", "Model", "Prompt",
                                 "TTFT (ms)", "Latency (ms)", "Tokens"],
                        interactive=False,
                    )
                    with gr.Row():
                        history_refresh_btn = gr.Button("Refresh", size="sm")
                        history_clear_btn = gr.Button("Clear history", size="sm")

        error_timer = gr.Timer(1.0)

        # ─────────────────────────────────────────────────────────────
        # EVENT BINDINGS
        # ─────────────────────────────────────────────────────────────

        editor_fields = [endpoint_id, name_input, url_input, api_key_input,
                         headers_input, model_input]
        reasoning_fields = [reasoning_group, effort, max_completion, thinking, budget]

        app.load(
            fn=handlers.load_endpoints,
            inputs=[],
            outputs=[endpoint_select, *editor_fields, *reasoning_fields],
        )

        endpoint_select.input(
            fn=handlers.select_endpoint,
            inputs=[endpoint_select],
            outputs=[*editor_fields, *reasoning_fields],
        )
        model_input.change(
            fn=handlers.reasoning_updates,
            inputs=[model_input],
            outputs=reasoning_fields,
        )

        new_btn.click(fn=handlers.new_endpoint, inputs=[], outputs=editor_fields)
        save_btn.click(
            fn=handlers.save_endpoint,
            inputs=editor_fields,
            outputs=[endpoint_status, endpoint_select, endpoint_id],
        )
        duplicate_btn.click(
            fn=handlers.duplicate_endpoint,
            inputs=[endpoint_id],
            outputs=[endpoint_status, endpoint_select],
        )
        delete_btn.click(
            fn=handlers.delete_endpoint,
            inputs=[endpoint_id],
            outputs=[endpoint_status, endpoint_select, *editor_fields, *reasoning_fields],
        )
        fetch_btn.click(
            fn=handlers.fetch_models,
            inputs=[name_input, url_input, api_key_input, headers_input],
            outputs=[endpoint_status, model_input],
        )
        test_btn.click(
            fn=handlers.check_endpoint_connection,
            inputs=[name_input, url_input, api_key_input, headers_input],
            outputs=[endpoint_status],
        )

        send_btn.click(
            fn=handlers.send_prompt,
            inputs=[prompt, system_prompt, temperature, max_tokens, stream,
                    thinking, effort, max_completion, budget],
            outputs=[response_output, metrics_panel, reasoning_output, error_line],
        )
        clear_btn.click(
            fn=handlers.clear_response,
            inputs=[],
            outputs=[response_output, metrics_panel, reasoning_output, error_line],
        )
        dismiss_btn.click(fn=handlers.dismiss_error, inputs=[], outputs=[error_line])
        error_timer.tick(fn=handlers.refresh_error, inputs=[], outputs=[error_line])

        export_md_btn.click(fn=handlers.export_markdown, inputs=[], outputs=[export_preview])
        export_json_btn.click(fn=handlers.export_json, inputs=[], outputs=[export_preview])
        history_refresh_btn.click(fn=handlers.load_history, inputs=[], outputs=[history_table])
        history_clear_btn.click(fn=handlers.clear_history, inputs=[], outputs=[history_table])

    return app
