"""
FastAPI web server for chord detection with WebSocket audio streaming.

Protocol on /ws:
  1. client sends a JSON text message with its configuration
     (instrument, tuning, low_freq, high_freq, sample_rate, notes_only)
  2. client streams binary messages of little-endian float32 mono samples
  3. server replies with one JSON result per analysed block
  4. {"type": "config_update", "config": {...}} changes the frequency window
"""
import argparse
import asyncio
import json
import logging
import os
import sys

import numpy as np
from fastapi import FastAPI, WebSocket, WebSocketDisconnect

from chordkit.config import AudioConfig
from chordkit.detector import PitchDetector
from chordkit.instruments import GuitarTuning, INSTRUMENT_PRESETS, PianoRange
from chordkit.logging_config import LOG_FORMATS, setup_logging
from chordkit.output import DictOutputHandler

# Global server log level (can be set via --log-level or CHORD_DETECTOR_LOG_LEVEL env var)
SERVER_LOG_LEVEL = os.environ.get("CHORD_DETECTOR_LOG_LEVEL", "INFO").upper()

logger = logging.getLogger("chordkit.web")

app = FastAPI(title="Chord Detector Web Service")


class ConnectionState:
    """
    Per-connection detector and sample accumulator.

    Blocks are analysed in arrival order and one at a time, so the
    connection's detector is never used concurrently.
    """

    def __init__(self, config):
        self.config = AudioConfig(config)
        self.detector = PitchDetector(
            self.config.transform_size,
            window=self.config.frequency_window,
            logger=logger,
        )
        self.sample_rate = self.config.sample_rate
        self.notes_only = self.config.notes_only
        self.output = DictOutputHandler()
        self.pending = np.zeros(0, dtype=np.float32)
        self.blocks_processed = 0

    @property
    def instrument_name(self):
        return self.config.instrument_name

    def update_config(self, updates):
        """Merge config updates and re-derive the frequency window."""
        merged = self.config.to_dict()
        # A new instrument or tuning re-derives everything it implies
        if 'instrument' in updates or 'tuning' in updates:
            for key in ('tuning', 'low_freq', 'high_freq', 'instrument_name'):
                merged[key] = None
        merged.update(updates)
        # Validate before committing so a rejected update leaves the old config
        config = AudioConfig(merged)
        window = config.frequency_window
        self.config = config
        self.notes_only = config.notes_only
        self.detector.frequency_window = window

    def add_samples(self, samples):
        """
        Append samples and return every complete block now available.
        """
        self.pending = np.concatenate([self.pending, samples])
        size = self.detector.transform_size
        blocks = []
        while len(self.pending) >= size:
            blocks.append(self.pending[:size])
            self.pending = self.pending[size:]
        return blocks

    def process_block(self, block):
        pitches, result = self.detector.process_block(block, self.sample_rate)
        self.blocks_processed += 1
        return self.output.handle(pitches, result, notes_only=self.notes_only)


# Store active connections
active_connections: dict[str, ConnectionState] = {}


def decode_samples(payload: bytes) -> np.ndarray:
    """Decode a binary frame of little-endian float32 samples."""
    if len(payload) % 4:
        raise ValueError(f"Audio frame length {len(payload)} is not a multiple of 4 bytes")
    return np.frombuffer(payload, dtype='<f4').astype(np.float32)


@app.get("/health")
async def health_check():
    """Health check endpoint."""
    return {"status": "healthy", "connections": len(active_connections)}


@app.get("/api/instruments")
async def get_instruments():
    """Instrument presets with their tunings/ranges and frequency windows."""
    instruments = {}
    for key, preset in INSTRUMENT_PRESETS.items():
        tunings = []
        for tuning in preset['tunings']:
            config = AudioConfig({'instrument': key, 'tuning': tuning})
            window = config.frequency_window
            display = (GuitarTuning(tuning) if key == 'guitar' else PianoRange(tuning)).display_name
            tunings.append({
                "id": tuning,
                "name": display,
                "low_freq": round(window.min_freq, 2),
                "high_freq": round(window.max_freq, 2),
            })
        instruments[key] = {
            "name": preset['name'],
            "default_tuning": preset['default_tuning'],
            "tunings": tunings,
        }
    return {"instruments": instruments}


@app.websocket("/ws")
async def websocket_endpoint(websocket: WebSocket):
    """WebSocket endpoint for audio streaming and chord detection."""
    await websocket.accept()
    connection_id = f"{websocket.client.host}:{id(websocket)}" if websocket.client else str(id(websocket))

    try:
        config_msg = await websocket.receive_text()
        try:
            state = ConnectionState(json.loads(config_msg))
        except (ValueError, TypeError) as e:
            await websocket.send_json({"type": "error", "message": f"Invalid configuration: {e}"})
            await websocket.close(code=1003)
            return

        active_connections[connection_id] = state
        logger.info("New connection: %s (%s)", connection_id, state.instrument_name)

        await websocket.send_json({
            "type": "connected",
            "message": f"Connected for {state.instrument_name}",
            "config": state.config.to_dict(),
            "server_log_level": SERVER_LOG_LEVEL,
        })

        while True:
            message = await websocket.receive()
            if message.get("type") == "websocket.disconnect":
                break

            if message.get("text") is not None:
                try:
                    text_data = json.loads(message["text"])
                    if text_data.get("type") == "config_update":
                        state.update_config(text_data.get("config", {}))
                        window = state.detector.frequency_window
                        logger.debug("Config updated: %s -> %.1f-%.1f Hz",
                                     connection_id, window.min_freq, window.max_freq)
                        await websocket.send_json({
                            "type": "config_updated",
                            "config": state.config.to_dict(),
                        })
                except (ValueError, TypeError, AttributeError) as e:
                    logger.warning("Bad text message from %s: %s", connection_id, e)
                    await websocket.send_json({"type": "error", "message": str(e)})
                continue

            payload = message.get("bytes")
            if not payload:
                continue

            try:
                samples = decode_samples(payload)
            except ValueError as e:
                await websocket.send_json({"type": "error", "message": str(e)})
                continue

            for block in state.add_samples(samples):
                # Keep the event loop free while the block is analysed
                result = await asyncio.to_thread(state.process_block, block)
                await websocket.send_json(result)

    except WebSocketDisconnect:
        pass
    finally:
        state = active_connections.pop(connection_id, None)
        if state is not None:
            logger.info("Connection closed: %s (%d blocks)", connection_id, state.blocks_processed)


def parse_args():
    """Parse command line arguments."""
    parser = argparse.ArgumentParser(description='FastAPI web server for chord detection')
    parser.add_argument('--host', type=str, default='0.0.0.0', help='Host to bind to (default: 0.0.0.0)')
    parser.add_argument('--port', type=int, default=9103, help='Port to bind to (default: 9103)')
    parser.add_argument('--reload', action='store_true', help='Enable auto-reload for development')
    parser.add_argument('--log-level', type=str, default='INFO',
                        choices=['DEBUG', 'INFO', 'WARNING', 'ERROR', 'CRITICAL'],
                        help='Logging level for server (default: INFO). Use DEBUG for verbose output.')
    parser.add_argument('--log-format', choices=LOG_FORMATS, default='text',
                        help='Diagnostic log format (default: text)')
    parser.add_argument('--workers', type=int, default=1,
                        help='Number of worker processes (default: 1). Each worker handles connections independently. '
                             'Note: --reload cannot be used with --workers > 1.')
    return parser.parse_args()


if __name__ == "__main__":
    import uvicorn
    args = parse_args()

    if args.workers > 1 and args.reload:
        print("❌ Error: --reload cannot be used with --workers > 1")
        sys.exit(1)

    # Set log level via environment variable (so all worker processes can access it)
    os.environ["CHORD_DETECTOR_LOG_LEVEL"] = args.log_level.upper()
    SERVER_LOG_LEVEL = args.log_level.upper()
    setup_logging(level=SERVER_LOG_LEVEL, log_format=args.log_format)

    print(f"🚀 Starting Chord Detector Web Server on {args.host}:{args.port}")
    print(f"📡 WebSocket endpoint: ws://{args.host}:{args.port}/ws")

    uvicorn.run(
        "web_server:app",
        host=args.host,
        port=args.port,
        reload=args.reload,
        log_level=args.log_level.lower(),
        workers=args.workers if args.workers > 1 else None,
    )
