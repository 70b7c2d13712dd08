"""Streamlit frontend for TexFill.

Three steps: paste or upload a LaTeX template, fill in the extracted fields,
download the compiled PDF.
"""

import logging
import os
from typing import Any

import httpx
import streamlit as st
from typing_extensions import TypedDict

# Configuration
API_BASE_URL = os.getenv("API_BASE_URL", "http://localhost:8000")

# Page config
st.set_page_config(
    page_title="TexFill",
    page_icon="📄",
    layout="wide",
    initial_sidebar_state="expanded",
)

# Configure logging
logging.basicConfig(level=logging.INFO)
logger = logging.getLogger(__name__)


# =============================================================================
# Type Definitions
# =============================================================================


class FieldDescriptor(TypedDict):
    """A fillable field extracted from the template."""
    id: str
    label: str
    default: str


class ApiFailure(TypedDict):
    """Structured error returned by the API."""
    detail: str
    error_code: str | None
    troubleshooting: list[str]
    extra: dict[str, Any] | None


# =============================================================================
# API Client
# =============================================================================


class TexFillClient:
    """API client for the TexFill backend."""

    def __init__(self, base_url: str):
        """Initialize the API client.

        Args:
            base_url: Base URL of the API.
        """
        self.base_url = base_url.rstrip("/")

    def health_check(self) -> bool:
        """Check if the API is healthy.

        Returns:
            True if API is healthy, False otherwise.
        """
        try:
            response = httpx.get(f"{self.base_url}/health", timeout=5.0)
            return response.status_code == 200
        except httpx.HTTPError:
            return False

    def compiler_status(self) -> list[dict[str, Any]]:
        """Fetch availability of the configured LaTeX engines."""
        try:
            response = httpx.get(f"{self.base_url}/health/compilers", timeout=30.0)
            response.raise_for_status()
            return response.json()["engines"]
        except httpx.HTTPError as e:
            logger.error(f"Compiler status error: {e}")
            return []

    def extract_schema(self, template: str) -> tuple[list[FieldDescriptor] | None, ApiFailure | None]:
        """Send a template for field extraction.

        Args:
            template: Raw LaTeX source.

        Returns:
            (fields, None) on success, (None, failure) otherwise.
        """
        try:
            response = httpx.post(
                f"{self.base_url}/templates/extract",
                content=template.encode("utf-8"),
                headers={"Content-Type": "text/plain"},
                timeout=90.0,
            )
        except httpx.HTTPError as e:
            logger.error(f"Extraction request error: {e}")
            return None, _transport_failure(e)

        if response.is_success:
            return response.json()["schema"], None
        return None, _parse_failure(response)

    def generate_pdf(
        self,
        template: str,
        values: dict[str, str],
        fields: list[FieldDescriptor],
    ) -> tuple[bytes | None, ApiFailure | None]:
        """Request a compiled PDF.

        Args:
            template: Raw LaTeX source.
            values: Field id to value mapping.
            fields: The extracted field schema.

        Returns:
            (pdf_bytes, None) on success, (None, failure) otherwise.
        """
        try:
            response = httpx.post(
                f"{self.base_url}/templates/generate",
                json={"template": template, "values": values, "fields": fields},
                timeout=240.0,
            )
        except httpx.HTTPError as e:
            logger.error(f"Generation request error: {e}")
            return None, _transport_failure(e)

        if response.is_success:
            return response.content, None
        return None, _parse_failure(response)


def _transport_failure(error: httpx.HTTPError) -> ApiFailure:
    return ApiFailure(
        detail=f"Could not reach the API: {error}",
        error_code=None,
        troubleshooting=[f"Check that the backend is running at {API_BASE_URL}"],
        extra=None,
    )


def _parse_failure(response: httpx.Response) -> ApiFailure:
    try:
        body = response.json()
    except ValueError:
        body = {}
    detail = body.get("detail") if isinstance(body, dict) else None
    return ApiFailure(
        detail=str(detail or response.reason_phrase),
        error_code=body.get("error_code") if isinstance(body, dict) else None,
        troubleshooting=body.get("troubleshooting", []) if isinstance(body, dict) else [],
        extra=body.get("extra") if isinstance(body, dict) else None,
    )


# =============================================================================
# UI Components
# =============================================================================


def render_sidebar(client: TexFillClient) -> None:
    """Render the sidebar with connection and compiler status.

    Args:
        client: The API client instance.
    """
    with st.sidebar:
        st.title("📄 TexFill")

        st.divider()

        if client.health_check():
            st.success("✅ API Connected")
        else:
            st.error("❌ API Disconnected")
            st.info(f"API URL: {API_BASE_URL}")

        if st.button("Check LaTeX engines"):
            with st.spinner("Probing engines..."):
                for engine in client.compiler_status():
                    if engine["available"]:
                        st.write(f"✅ {engine['name']}: {engine.get('version') or ''}")
                    else:
                        st.write(f"❌ {engine['name']}: {engine.get('error') or 'not available'}")

        st.divider()

        st.subheader("Instructions")
        st.markdown("""
        1. **Template**: Paste or upload a complete LaTeX document
        2. **Fill**: Review the detected fields and enter your values
        3. **Download**: Compile and save the PDF
        """)

        st.divider()
        st.caption(f"API: `{API_BASE_URL}`")


def render_failure(failure: ApiFailure) -> None:
    """Show an API failure with its troubleshooting hints and attempt log."""
    st.error(failure["detail"])

    if failure["troubleshooting"]:
        st.markdown("**Troubleshooting**")
        for tip in failure["troubleshooting"]:
            st.markdown(f"- {tip}")

    attempts = (failure.get("extra") or {}).get("attempts") or []
    for attempt in attempts:
        with st.expander(f"❌ {attempt['engine_name']}: {attempt.get('error_message') or ''}"):
            st.code(attempt["command"], language="bash")
            st.code(attempt.get("log_tail") or "(no output)", language="text")


def render_template_step(client: TexFillClient) -> None:
    """Render step 1: template input and extraction."""
    st.subheader("1. Template")

    uploaded = st.file_uploader("Upload a .tex file", type=["tex"])
    if uploaded is not None:
        st.session_state.template = uploaded.getvalue().decode("utf-8", errors="replace")

    template = st.text_area(
        "LaTeX template",
        value=st.session_state.template,
        height=360,
        placeholder="\\documentclass{article}\n\\newcommand{\\name}{Your Name}\n...",
    )
    st.session_state.template = template

    if st.button("🔍 Extract Fields", type="primary", disabled=not template.strip()):
        with st.spinner("Analyzing template..."):
            fields, failure = client.extract_schema(template)
        if failure:
            st.session_state.failure = failure
            return

        st.session_state.failure = None
        st.session_state.fields = fields
        st.session_state.values = {field["id"]: field["default"] for field in fields}
        st.session_state.step = "fill"
        st.rerun()


def render_fill_step(client: TexFillClient) -> None:
    """Render step 2: field form and PDF generation."""
    st.subheader("2. Fill in your details")
    fields: list[FieldDescriptor] = st.session_state.fields

    with st.form("field_values"):
        col1, col2 = st.columns(2)
        for index, field in enumerate(fields):
            column = col1 if index % 2 == 0 else col2
            with column:
                st.session_state.values[field["id"]] = st.text_input(
                    field["label"],
                    value=st.session_state.values.get(field["id"], field["default"]),
                    key=f"field_{field['id']}",
                )
        submitted = st.form_submit_button("📄 Generate PDF", type="primary")

    if st.button("← Back to template"):
        st.session_state.step = "template"
        st.rerun()

    if submitted:
        with st.spinner("Compiling PDF..."):
            pdf, failure = client.generate_pdf(
                st.session_state.template, st.session_state.values, fields
            )
        if failure:
            st.session_state.failure = failure
            return

        st.session_state.failure = None
        st.session_state.pdf = pdf
        st.session_state.step = "done"
        st.rerun()


def render_done_step() -> None:
    """Render step 3: download."""
    st.subheader("3. Download")
    st.success("✅ PDF generated")
    st.download_button(
        "⬇️ Download PDF",
        data=st.session_state.pdf,
        file_name="resume.pdf",
        mime="application/pdf",
        type="primary",
    )

    col1, col2 = st.columns(2)
    with col1:
        if st.button("✏️ Edit values"):
            st.session_state.step = "fill"
            st.rerun()
    with col2:
        if st.button("🔄 Start over"):
            reset_session_state()
            st.rerun()


def init_session_state() -> None:
    """Initialize Streamlit session state."""
    defaults = {
        "step": "template",
        "template": "",
        "fields": [],
        "values": {},
        "pdf": None,
        "failure": None,
    }
    for key, value in defaults.items():
        if key not in st.session_state:
            st.session_state[key] = value


def reset_session_state() -> None:
    """Forget the current template and results."""
    for key in ("step", "template", "fields", "values", "pdf", "failure"):
        st.session_state.pop(key, None)
    init_session_state()


def main() -> None:
    """Main entry point for the Streamlit app."""
    init_session_state()
    client = TexFillClient(API_BASE_URL)

    render_sidebar(client)

    st.title("TexFill")
    st.markdown("Turn a LaTeX template into a filled-in PDF")

    st.divider()

    step = st.session_state.step
    if step == "template":
        render_template_step(client)
    elif step == "fill":
        render_fill_step(client)
    else:
        render_done_step()

    if st.session_state.failure:
        render_failure(st.session_state.failure)


if __name__ == "__main__":
    main()
