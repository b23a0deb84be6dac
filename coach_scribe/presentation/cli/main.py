#!/usr/bin/env python3
"""
Coach Scribe - CLI Main Entry Point
Entry point of the CLI application
"""

import argparse
from pathlib import Path

from colorama import Fore, Style  # type: ignore[import-untyped]
from colorama import init as colorama_init

from coach_scribe.domain import SessionMode
from coach_scribe.infrastructure.audio import MicrophoneAudioSource

from .controller import CLIController


def parse_args() -> argparse.Namespace:
    """Parse CLI arguments"""
    parser = argparse.ArgumentParser(
        prog="coach-scribe",
        description="Record a parent-child play session, transcribe it and code parenting skills",
    )
    parser.add_argument(
        "-m",
        "--mode",
        type=SessionMode,
        choices=list(SessionMode),
        default=SessionMode.RELATIONSHIP,
        help="Session mode (default: relationship)",
    )
    parser.add_argument(
        "-l",
        "--list-devices",
        action="store_true",
        help="List available audio input devices and exit",
    )
    parser.add_argument(
        "-d",
        "--device",
        type=int,
        default=None,
        metavar="ID",
        help="Audio input device ID (use --list-devices to see available devices)",
    )
    parser.add_argument(
        "-f",
        "--file",
        type=str,
        default=None,
        metavar="PATH",
        help="Audio file to analyse instead of recording from the microphone",
    )
    parser.add_argument(
        "-c",
        "--config",
        type=Path,
        default=None,
        metavar="PATH",
        help="Configuration file (default: config.toml in the project root)",
    )
    parser.add_argument(
        "--history",
        action="store_true",
        help="Show stored sessions and current progress for the mode, then exit",
    )
    return parser.parse_args()


def print_audio_devices() -> None:
    """Print available audio input devices"""
    devices = MicrophoneAudioSource.list_devices()

    print(f"\n{Fore.CYAN}Available audio input devices:{Style.RESET_ALL}\n")
    for device in devices:
        default_marker = (
            f" {Fore.GREEN}(default){Style.RESET_ALL}" if device.is_default else ""
        )
        print(f"  [{device.id}] {device.name}{default_marker}")
    print()


def main() -> None:
    """Entry point"""
    args = parse_args()

    colorama_init(autoreset=True)

    if args.list_devices:
        print_audio_devices()
        return

    controller = CLIController(
        mode=args.mode,
        device_id=args.device,
        file_path=args.file,
        config_path=args.config,
    )
    if args.history:
        controller.show_history()
        return
    controller.run()
