"""
SheetGPT - Streamlit UI for spreadsheet exploration
Upload a CSV/Excel file and get:
- Summary cards and charts (Plotly)
- Keyword-matched answers to questions about the data
- A searchable, filterable, sortable table with CSV export
- A narrative summary with strategic insights

All numbers are computed with pandas from the in-memory dataset.
"""
import html
import streamlit as st
from pathlib import Path
from typing import Optional

from sheetgpt.errors import SheetGPTError
from sheetgpt.loader import Dataset, load_dataset
from sheetgpt.logger import get_logger
from sheetgpt.config import MAX_UPLOAD_MB, ROWS_PER_PAGE
from sheetgpt.column_stats import analyze_dataset
from sheetgpt.narrative import generate_narrative, generate_insights, insight_severity
from sheetgpt.dashboard import (
    summary_cards,
    chart_data,
    bar_figure,
    pie_figure,
    line_figure,
    scatter_figure,
)
from sheetgpt.query_router import SUGGESTED_QUERIES, QueryHistory, answer_query
from sheetgpt.table_view import (
    FILTER_OPERATORS,
    FilterCondition,
    TableState,
    column_type,
    display_frame,
    export_csv,
    filter_and_sort,
    paginate,
)
from sheetgpt.utils import format_number

logger = get_logger("sheetgpt.app")


# Page configuration
st.set_page_config(
    page_title="SheetGPT",
    page_icon="📊",
    layout="wide",
    initial_sidebar_state="expanded"
)

# Custom CSS
st.markdown("""
<style>
    .main-header {
        font-size: 2.5rem;
        font-weight: 700;
        color: #1E3A5F;
        margin-bottom: 0.5rem;
    }
    .sub-header {
        font-size: 1.1rem;
        color: #666;
        margin-bottom: 2rem;
    }
    .question-box {
        background: #eff6ff;
        border-left: 4px solid #60a5fa;
        border-radius: 0.5rem;
        padding: 0.75rem 1rem;
        margin: 0.5rem 0;
    }
    .answer-box {
        background: #f0fdf4;
        border-left: 4px solid #4ade80;
        border-radius: 0.5rem;
        padding: 0.75rem 1rem;
        margin: 0.5rem 0;
        white-space: pre-wrap;
    }
    .story {
        font-size: 1.1rem;
        line-height: 1.7;
        color: #374151;
    }
</style>
""", unsafe_allow_html=True)

SEVERITY_ICONS = {"warning": "⚠️", "success": "✅", "info": "📊"}


# ============================================================================
# SESSION
# ============================================================================

def init_session():
    """Initialize session state."""
    if "dataset" not in st.session_state:
        st.session_state.dataset = None
    if "upload_key" not in st.session_state:
        st.session_state.upload_key = None
    if "history" not in st.session_state:
        st.session_state.history = QueryHistory()
    if "table_state" not in st.session_state:
        st.session_state.table_state = TableState()
    if "uploader_nonce" not in st.session_state:
        st.session_state.uploader_nonce = 0


def reset_session():
    """Forget the current dataset and everything derived from it."""
    st.session_state.dataset = None
    st.session_state.upload_key = None
    st.session_state.history = QueryHistory()
    st.session_state.table_state = TableState()
    st.session_state.uploader_nonce = st.session_state.get("uploader_nonce", 0) + 1


def current_dataset() -> Optional[Dataset]:
    return st.session_state.dataset


# ============================================================================
# UPLOAD
# ============================================================================

def render_upload():
    """Render the landing screen with the file uploader."""
    st.markdown("### 📤 Transform Your Spreadsheets")
    st.caption(
        f"Upload an Excel or CSV file to get dashboards, a searchable table and a written summary "
        f"• Up to {MAX_UPLOAD_MB} MB"
    )

    uploaded_file = st.file_uploader(
        "Drop your file here, or click to browse",
        type=["csv", "xlsx", "xls"],
        accept_multiple_files=False,
        help="Supports CSV and Excel files",
        key=f"uploader_{st.session_state.uploader_nonce}"
    )

    if uploaded_file is None:
        return

    file_bytes = uploaded_file.getvalue()
    upload_key = (uploaded_file.name, len(file_bytes))
    if upload_key == st.session_state.upload_key:
        return

    with st.spinner(f"Processing {uploaded_file.name}..."):
        try:
            dataset = load_dataset(file_bytes, uploaded_file.name)
        except SheetGPTError as e:
            logger.warning("Upload of %s failed: %s", uploaded_file.name, e)
            st.error(f"❌ {e}")
            st.stop()

    reset_session()
    st.session_state.dataset = dataset
    st.session_state.upload_key = upload_key
    st.toast(f"{dataset.filename} has been processed and is ready for analysis.", icon="✅")
    st.rerun()


def render_sidebar(dataset: Dataset):
    """Render sidebar with file info and the new-upload button."""
    with st.sidebar:
        st.markdown("## 📄 Current File")
        st.write(f"**{dataset.filename}**")

        col1, col2 = st.columns(2)
        with col1:
            st.metric("Rows", format_number(dataset.row_count))
        with col2:
            st.metric("Columns", len(dataset.columns))

        st.markdown("---")

        if st.button("📤 Upload New File", use_container_width=True):
            reset_session()
            st.rerun()


# ============================================================================
# DASHBOARD
# ============================================================================

def render_dashboard(dataset: Dataset):
    """Render summary cards and the four charts."""
    cards = summary_cards(dataset)

    cols = st.columns(4)
    with cols[0]:
        st.metric("Total Records", format_number(cards.total_rows), help="rows in dataset")
    with cols[1]:
        st.metric("Columns", cards.columns, help="data fields")
    with cols[2]:
        st.metric("Average", cards.average, help=f"first numeric column ({cards.metric_column or 'none'})")
    with cols[3]:
        st.metric("Maximum", cards.maximum, help="highest value")

    charts = chart_data(dataset)

    col1, col2 = st.columns(2)
    with col1:
        if charts.bar.empty:
            st.info("Category Distribution needs a text column and a numeric column.")
        else:
            st.plotly_chart(bar_figure(charts), use_container_width=True)
    with col2:
        if charts.pie.empty:
            st.info("Composition needs a text column.")
        else:
            st.plotly_chart(pie_figure(charts), use_container_width=True)

    col3, col4 = st.columns(2)
    with col3:
        if charts.line.empty:
            st.info("Trend Analysis needs a numeric column.")
        else:
            st.plotly_chart(line_figure(charts), use_container_width=True)
    with col4:
        if charts.scatter.empty:
            st.info("Correlation Analysis needs two numeric columns.")
        else:
            st.plotly_chart(scatter_figure(charts), use_container_width=True)


# ============================================================================
# QUERY
# ============================================================================

def submit_query(query_text: str, dataset: Dataset):
    """Answer a question and record it; blank questions are ignored."""
    if not query_text.strip():
        return
    try:
        response = answer_query(query_text, dataset)
    except SheetGPTError as e:
        st.warning(str(e))
        return
    st.session_state.history.add(response)
    st.toast("Analysis complete based on your dataset.", icon="💬")


def render_query(dataset: Dataset):
    """Render the question box, suggestions and the answer history."""
    st.markdown("### 💬 Ask About Your Data")

    with st.form("query_form", clear_on_submit=True):
        query_text = st.text_input(
            "Your question:",
            placeholder="Ask me anything about your data... (e.g., 'What is the average price?')",
        )
        submitted = st.form_submit_button("🔍 Analyze", type="primary", use_container_width=True)

    if submitted:
        submit_query(query_text, dataset)

    st.caption("💡 Try these suggestions:")
    suggestion_cols = st.columns(2)
    for i, suggestion in enumerate(SUGGESTED_QUERIES):
        with suggestion_cols[i % 2]:
            if st.button(suggestion, key=f"suggestion_{i}", use_container_width=True):
                submit_query(suggestion, dataset)

    history: QueryHistory = st.session_state.history
    if not len(history):
        st.info("Start asking questions: ask specific questions to get precise data-driven answers from your dataset.")
        return

    st.markdown("### 📈 Analysis Results")
    for response in history:
        with st.container(border=True):
            st.markdown("**Your Question:**")
            st.markdown(f'<div class="question-box">{html.escape(response.query)}</div>', unsafe_allow_html=True)
            st.markdown("**Data Analysis:**")
            st.markdown(f'<div class="answer-box">{html.escape(response.response)}</div>', unsafe_allow_html=True)
            st.caption(f"{response.timestamp:%Y-%m-%d %H:%M:%S} • intent: {response.intent}")


# ============================================================================
# DATA TABLE
# ============================================================================

def _render_filter_controls(dataset: Dataset, state: TableState):
    with st.expander("🔽 Filter", expanded=False):
        col1, col2, col3, col4 = st.columns([3, 2, 3, 1])
        with col1:
            column = st.selectbox("Column", dataset.columns, key="filter_column")
        with col2:
            operator = st.selectbox(
                "Operator",
                list(FILTER_OPERATORS.keys()),
                format_func=lambda op: FILTER_OPERATORS[op],
                key="filter_operator",
            )
        with col3:
            value = st.text_input("Value", placeholder="Filter value", key="filter_value")
        with col4:
            st.write("")
            if st.button("Add Filter") and column and value:
                state.add_filter(FilterCondition(column=column, operator=operator, value=value))
                st.rerun()

    if state.filters:
        filter_cols = st.columns(min(len(state.filters), 4))
        for i, condition in enumerate(state.filters):
            with filter_cols[i % len(filter_cols)]:
                if st.button(f"✖ {condition.describe()}", key=f"remove_filter_{i}"):
                    state.remove_filter(i)
                    st.rerun()


def render_data_table(dataset: Dataset):
    """Render overview cards, column types and the interactive table."""
    state: TableState = st.session_state.table_state

    search_term = st.text_input("🔍 Search data...", value=state.search_term, key="table_search")
    if search_term != state.search_term:
        state.search_term = search_term
        state.page = 1

    _render_filter_controls(dataset, state)

    col1, col2 = st.columns([3, 1])
    with col1:
        sort_options = ["None"] + dataset.columns
        current = state.sort_column if state.sort_column in dataset.columns else "None"
        sort_col = st.selectbox("Sort by:", sort_options, index=sort_options.index(current))
        if sort_col == "None":
            state.sort_column = None
        elif sort_col != state.sort_column:
            state.toggle_sort(sort_col)
    with col2:
        st.write("")
        arrow = "↑" if state.sort_direction == "asc" else "↓"
        if st.button(f"Direction {arrow}", disabled=state.sort_column is None, use_container_width=True):
            state.toggle_sort(state.sort_column)
            st.rerun()

    filtered = filter_and_sort(dataset, state)

    cols = st.columns(3)
    with cols[0]:
        st.metric("Total Rows", format_number(dataset.row_count))
    with cols[1]:
        st.metric("Columns", len(dataset.columns))
    with cols[2]:
        st.metric("Filtered Rows", format_number(len(filtered)))

    with st.expander("📋 Column Information", expanded=False):
        info_cols = st.columns(3)
        for i, column in enumerate(dataset.columns):
            with info_cols[i % 3]:
                st.markdown(f"**{column}** · `{column_type(dataset, column)}`")

    page = paginate(filtered, state.page, ROWS_PER_PAGE)
    state.page = page.page

    st.dataframe(display_frame(page.rows), use_container_width=True, hide_index=True)

    nav1, nav2, nav3 = st.columns([4, 1, 1])
    with nav1:
        st.caption(f"{page.caption} • Page {page.page} of {page.total_pages}")
    with nav2:
        if st.button("◀ Previous", disabled=page.page <= 1, use_container_width=True):
            state.page -= 1
            st.rerun()
    with nav3:
        if st.button("Next ▶", disabled=page.page >= page.total_pages, use_container_width=True):
            state.page += 1
            st.rerun()

    st.download_button(
        "📥 Export",
        export_csv(filtered),
        f"{Path(dataset.filename).stem}_export.csv",
        "text/csv",
        use_container_width=True
    )


# ============================================================================
# SUMMARY
# ============================================================================

def render_summary(dataset: Dataset):
    """Render the data story, insights and quick stats."""
    analysis = analyze_dataset(dataset)

    st.markdown("### 📖 Data Story")
    st.markdown(f'<p class="story">{html.escape(generate_narrative(analysis, dataset))}</p>', unsafe_allow_html=True)

    st.markdown("### 📈 Strategic Insights")
    for insight in generate_insights(analysis):
        icon = SEVERITY_ICONS[insight_severity(insight)]
        st.markdown(f"{icon} **{insight}**")

    cols = st.columns(4)
    with cols[0]:
        st.metric("Total Records", format_number(analysis.total_rows))
    with cols[1]:
        st.metric("Numeric Fields", len(analysis.numeric_columns))
    with cols[2]:
        st.metric("Text Fields", len(analysis.text_columns))
    with cols[3]:
        st.metric("Complete Fields", f"{round(analysis.complete_field_percent)}%")


# ============================================================================
# MAIN
# ============================================================================

def main():
    """Main application."""
    init_session()

    st.markdown('<p class="main-header">📊 SheetGPT</p>', unsafe_allow_html=True)

    dataset = current_dataset()
    if dataset is None:
        st.markdown(
            '<p class="sub-header">Upload your Excel or CSV file and turn raw rows and columns into '
            'interactive dashboards and insightful summaries • no formulas, no manual charts</p>',
            unsafe_allow_html=True
        )
        render_upload()
        return

    st.markdown(
        f'<p class="sub-header">Analyzing <strong>{html.escape(dataset.filename)}</strong> • '
        f'{format_number(dataset.row_count)} records</p>',
        unsafe_allow_html=True
    )

    render_sidebar(dataset)

    tab1, tab2, tab3, tab4 = st.tabs(["📊 Dashboard", "💬 AI Query", "📋 Data Table", "📖 Summary"])

    with tab1:
        render_dashboard(dataset)

    with tab2:
        render_query(dataset)

    with tab3:
        render_data_table(dataset)

    with tab4:
        render_summary(dataset)

    st.markdown("---")
    st.caption("📊 pandas for parsing & stats | 📈 Plotly for charts | 💬 keyword-matched questions")


if __name__ == "__main__":
    main()
