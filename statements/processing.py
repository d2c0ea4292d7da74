"""
Upload Processing

Filters an upload batch down to PDF files, registers one statement per
file and runs one extraction per statement concurrently. Each extraction
settles its own statement by id; a failure is recorded on that statement
only and never cancels the others.
"""

import asyncio
import logging
from dataclasses import dataclass, field

from .errors import GENERIC_EXTRACTION_MESSAGE, ExtractionError, UploadRejectedError
from .pdf import context_for, inspect_pdf

logger = logging.getLogger(__name__)


@dataclass
class UploadBatch:
    accepted: list = field(default_factory=list)
    rejected: list = field(default_factory=list)  # file names


def accept_uploads(uploads):
    """
    Splits a batch into PDF uploads and rejected file names.

    Raises:
        UploadRejectedError: The batch is non-empty and holds no PDF at all
    """
    batch = UploadBatch()
    for upload in uploads:
        if upload.is_pdf:
            batch.accepted.append(upload)
        else:
            batch.rejected.append(upload.name)

    if batch.rejected:
        logger.info("Rejected non-PDF uploads: %s", ", ".join(batch.rejected))
    if not batch.accepted and batch.rejected:
        raise UploadRejectedError(batch.rejected)
    return batch


async def extract_statement(store, statement_id, upload, extractor, default_context, semaphore):
    """Runs the extraction of one statement and records its outcome in the store."""
    info = await asyncio.to_thread(inspect_pdf, upload.data)
    store.set_page_count(statement_id, info.page_count)
    context = context_for(info, default_context)

    try:
        async with semaphore:
            transactions = await extractor.extract(upload, context)
    except ExtractionError as exc:
        logger.warning("Extraction failed for %s: %s", upload.name, exc.message)
        store.fail_document(statement_id, exc.message)
        return
    except Exception as exc:
        logger.exception("Unexpected error while extracting %s", upload.name)
        store.fail_document(statement_id, str(exc) or GENERIC_EXTRACTION_MESSAGE)
        return

    store.complete_document(statement_id, transactions)


async def process_uploads(store, uploads, extractor, default_context, max_concurrent=4):
    """
    Registers the uploads as statements and extracts them all.

    A single-file batch becomes the selected view, like opening it.

    Args:
        store: StatementStore receiving the statements
        uploads: Accepted PDF uploads
        extractor: TransactionExtractor
        default_context: Context hint sent with every file
        max_concurrent: Upper bound on extractions in flight

    Returns:
        list: The created statements (their final state is in the store)
    """
    uploads = list(uploads)
    statements = store.add_documents(uploads)
    if len(statements) == 1:
        store.select(statements[0].id)

    semaphore = asyncio.Semaphore(max_concurrent)
    await asyncio.gather(*(
        extract_statement(store, statement.id, upload, extractor, default_context, semaphore)
        for statement, upload in zip(statements, uploads)
    ))
    return statements


def run_uploads(store, uploads, extractor, default_context, max_concurrent=4):
    """Blocking entry point for the Streamlit script thread."""
    return asyncio.run(
        process_uploads(store, uploads, extractor, default_context, max_concurrent)
    )
