"""
Ingestion — corpus normalisation, chunking, and indexing into the vector store.

This module is responsible for the ETL-like pipeline that converts raw
corpus files (Markdown docs, chat exports, source code) into embedded
chunks stored in a vector database.
"""
