import math

import pandas as pd
import streamlit as st

from statements.config import configure_logging, get_settings
from statements.errors import ConfigurationError, PDF_ONLY_MESSAGE, UploadRejectedError
from statements.export import XLSX_MIME_TYPE, export_filename, to_csv_bytes, to_xlsx_bytes
from statements.extraction import GeminiExtractor
from statements.models import Status, Upload
from statements.processing import accept_uploads, run_uploads
from statements.store import ALL_VIEW, StatementStore
from statements.views import (
    SORTABLE_FIELDS,
    compute_stats,
    displayed_transactions,
    format_currency,
    sort_transactions,
)

settings = get_settings()
logger = configure_logging(settings.log_level)

st.set_page_config(page_title="Extracteur de Relevés Bancaires", layout="wide")

st.title("🏦 Extracteur de Relevés Bancaires")
st.markdown("""
Chargez un ou plusieurs relevés PDF : les transactions sont extraites par l'IA,
modifiables directement dans le tableau, puis exportables vers Excel.
""")

# Table column -> transaction field
COLUMN_FIELDS = {"Date": "date", "Libellé": "label", "Débit": "debit", "Crédit": "credit"}
SORT_LABELS = {"date": "Date", "label": "Libellé", "debit": "Débit", "credit": "Crédit"}
STATUS_ICONS = {Status.PROCESSING: "🟡", Status.READY: "🟢", Status.ERROR: "🔴"}

# --- Session State ---
if "store" not in st.session_state:
    st.session_state.store = StatementStore()
    st.session_state.global_error = None
    st.session_state.pending_delete = None
    st.session_state.uploader_rev = 0
    st.session_state.editor_rev = 0

store = st.session_state.store


@st.cache_resource
def get_extractor(api_key, model):
    return GeminiExtractor(api_key, model=model)


def handle_uploads(uploaded_files):
    """Accepts the PDF files of the batch and extracts them all."""
    st.session_state.global_error = None
    uploads = [Upload(f.name, f.type, f.getvalue()) for f in uploaded_files]

    try:
        batch = accept_uploads(uploads)
    except UploadRejectedError as e:
        st.session_state.global_error = str(e)
        return

    if batch.rejected:
        st.session_state.global_error = f"{PDF_ONLY_MESSAGE} Ignorés : {', '.join(batch.rejected)}"

    try:
        extractor = get_extractor(settings.require_api_key(), settings.gemini_model)
    except ConfigurationError as e:
        st.session_state.global_error = str(e)
        return

    with st.spinner("Extraction des données en cours..."):
        run_uploads(
            store,
            batch.accepted,
            extractor,
            settings.default_context,
            max_concurrent=settings.max_concurrent_extractions,
        )


def _cell_value(field, value):
    if field in ("debit", "credit"):
        if value is None or value == "" or (isinstance(value, float) and math.isnan(value)):
            return None
        return float(value)
    return "" if value is None else str(value)


def apply_edits(editor_key, row_ids):
    """Replays the data editor's pending changes on the store."""
    changes = st.session_state[editor_key]

    for row, edits in changes.get("edited_rows", {}).items():
        transaction_id = row_ids[int(row)]
        for column, value in edits.items():
            field = COLUMN_FIELDS.get(column)
            if field:
                store.update_transaction(transaction_id, field, _cell_value(field, value))

    for row in changes.get("deleted_rows", []):
        store.delete_transaction(row_ids[int(row)])

    st.session_state.editor_rev += 1


def view_label(view):
    if view == ALL_VIEW:
        return f"Vue Globale ({store.total_transactions})"
    statement = store.get(view)
    label = f"{STATUS_ICONS[statement.status]} {statement.file_name}"
    if statement.is_ready:
        label += f" ({len(statement.transactions)})"
    return label


# --- Sidebar ---
with st.sidebar:
    st.header("Session")
    if st.button("Nouvelle session", disabled=len(store) == 0):
        store.clear()
        st.session_state.pending_delete = None
        st.rerun()

    with st.expander("Fonctionnement"):
        st.markdown("""
        1. **Import** : seuls les fichiers PDF sont acceptés.
        2. **Extraction** : chaque fichier est envoyé séparément à Gemini.
        3. **Correction** : les dates hors format JJ/MM/AAAA sont signalées ; un débit saisi efface le crédit et inversement.
        4. **Export** : la vue affichée (un fichier ou tous) est exportée en .xlsx.
        """)

# --- Global Error Banner ---
if st.session_state.global_error:
    col_msg, col_close = st.columns([10, 1])
    col_msg.error(st.session_state.global_error)
    if col_close.button("Fermer"):
        st.session_state.global_error = None
        st.rerun()

# --- Upload ---
if len(store) > 0:
    st.subheader("Ajouter des fichiers")

uploaded_files = st.file_uploader(
    "Déposez vos relevés PDF ici",
    type=['pdf'],
    accept_multiple_files=True,
    key=f"uploader_{st.session_state.uploader_rev}",
)

if uploaded_files:
    handle_uploads(uploaded_files)
    st.session_state.uploader_rev += 1
    st.rerun()

if len(store) == 0:
    st.stop()

# --- View Selection ---
views = [ALL_VIEW] + [s.id for s in store.statements]
selected = st.radio(
    "Fichiers",
    views,
    index=views.index(store.active_view),
    format_func=view_label,
    horizontal=True,
)
if selected != store.active_view:
    store.select(selected)
    st.session_state.pending_delete = None
    st.rerun()

current = store.selected_statement
transactions = displayed_transactions(store)

# --- Toolbar & Title ---
col_title, col_actions = st.columns([3, 2])
with col_title:
    if current is None:
        st.subheader("Données Consolidées")
        st.caption("Affichage de toutes les transactions fusionnées.")
    else:
        st.subheader(current.file_name)
        caption = f"Importé le {current.upload_date:%d/%m/%Y %H:%M}"
        if current.page_count:
            caption += f" · {current.page_count} page(s)"
        st.caption(caption)

with col_actions:
    if transactions:
        base_name = export_filename(store)
        col_xlsx, col_csv = st.columns(2)
        col_xlsx.download_button(
            "Exporter Tout" if current is None else "Exporter Fichier",
            to_xlsx_bytes(transactions),
            f"{base_name}.xlsx",
            XLSX_MIME_TYPE,
            key="download-xlsx",
        )
        col_csv.download_button(
            "CSV", to_csv_bytes(transactions), f"{base_name}.csv", "text/csv", key="download-csv"
        )

    if current is not None:
        if st.session_state.pending_delete != current.id:
            if st.button("🗑️ Supprimer ce fichier"):
                st.session_state.pending_delete = current.id
                st.rerun()
        else:
            st.warning("Supprimer ce fichier et ses données ?")
            col_yes, col_no = st.columns(2)
            if col_yes.button("Confirmer", type="primary"):
                store.delete_document(current.id)
                st.session_state.pending_delete = None
                st.rerun()
            if col_no.button("Annuler"):
                st.session_state.pending_delete = None
                st.rerun()

# --- Errors in list / current file ---
if current is None:
    for statement in store.statements:
        if statement.status is Status.ERROR:
            st.error(f"{statement.file_name} : {statement.error}")
elif current.status is Status.ERROR:
    st.error(f"Erreur lors de l'analyse du fichier.\n\n{current.error}")

# --- Data View ---
if current is not None and current.status is Status.PROCESSING:
    st.info("Extraction des données en cours...")
elif not transactions:
    if current is None or current.status is not Status.ERROR:
        st.info("Aucune transaction à afficher pour le moment.")
else:
    stats = compute_stats(transactions)
    col1, col2, col3, col4 = st.columns(4)
    col1.metric("Transactions", stats.total_transactions)
    col2.metric("Total Débit", format_currency(stats.total_debit, settings.currency))
    col3.metric("Total Crédit", format_currency(stats.total_credit, settings.currency))
    col4.metric("Solde", format_currency(stats.balance, settings.currency, signed=True))

    invalid = sum(1 for t in transactions if not t.is_valid)
    if invalid:
        st.warning(f"⚠️ {invalid} date(s) au format invalide (JJ/MM/AAAA attendu).")

    col_sort, col_order = st.columns([3, 1])
    sort_field = col_sort.selectbox(
        "Trier par", SORTABLE_FIELDS, format_func=SORT_LABELS.get, key="sort-field"
    )
    descending = col_order.toggle("Décroissant", key="sort-desc")
    rows = sort_transactions(transactions, sort_field, descending)
    row_ids = [t.id for t in rows]

    df = pd.DataFrame(
        [
            {
                "Date": t.date,
                "Libellé": t.label,
                "Débit": t.debit,
                "Crédit": t.credit,
                "Date valide": t.is_valid,
            }
            for t in rows
        ]
    )

    editor_key = f"editor_{store.active_view}_{st.session_state.editor_rev}"
    st.data_editor(
        df,
        key=editor_key,
        on_change=apply_edits,
        args=(editor_key, row_ids),
        num_rows="dynamic",
        hide_index=True,
        use_container_width=True,
        disabled=["Date valide"],
        column_config={
            "Débit": st.column_config.NumberColumn(format="%.2f", min_value=0.0, step=0.01),
            "Crédit": st.column_config.NumberColumn(format="%.2f", min_value=0.0, step=0.01),
            "Date valide": st.column_config.CheckboxColumn(),
        },
    )
