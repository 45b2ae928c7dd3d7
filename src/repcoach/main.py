import argparse
import logging
import os
import sys
import traceback

from .exercise_analysis.profiles import available_exercises
from .exercise_analysis.session import ExerciseSession


def build_parser() -> argparse.ArgumentParser:
    parser = argparse.ArgumentParser(description="Rep Coach - form-checked exercise rep counter")
    parser.add_argument('--mode', type=str, choices=['camera', 'video'], default='camera',
                        help='Run mode: camera (default) or video')
    parser.add_argument('--video', type=str, help='Path to the video file to analyze (required if mode=video)')
    parser.add_argument('--exercise', type=str, default='pushup', help='Exercise type (default: pushup)')
    parser.add_argument('--camera', type=int, default=0, help='Camera device ID')
    parser.add_argument('--model', type=str, required=True, help='Path to the MediaPipe pose landmarker .task model')
    parser.add_argument('--config', type=str, default=None, help='Exercise profile JSON file (default: bundled profiles)')
    parser.add_argument('--min-frame-interval', type=float, default=0.1,
                        help='Minimum seconds between analyzed frames (default: 0.1)')
    parser.add_argument('--no-voice', action='store_true', help='Disable spoken feedback')
    parser.add_argument('--log-level', type=str, default='INFO',
                        choices=['DEBUG', 'INFO', 'WARNING', 'ERROR'], help='Logging level')
    return parser


def main(argv=None) -> int:
    """Main entry point for Rep Coach."""
    args = build_parser().parse_args(argv)
    logging.basicConfig(level=args.log_level, format='%(asctime)s %(levelname)s %(name)s %(message)s')
    for name in ("ExerciseSession", "RepCounter", "FormValidator", "Trainer", "VoiceFeedback", "PoseDetector"):
        logging.getLogger(name).setLevel(args.log_level)

    exercises = available_exercises(args.config)
    if args.exercise not in exercises:
        print(f"Unsupported exercise '{args.exercise}'. Choose from: {', '.join(exercises)}")
        return 2
    if args.mode == 'video' and not args.video:
        print("Error: --video argument is required when mode is 'video'.")
        return 2
    if args.mode == 'video' and not os.path.isfile(args.video):
        print(f"Video file not found: {args.video}")
        return 2

    # Camera, model and speech stacks are only needed past this point
    from .feedback.voice_feedback import VoiceFeedback
    from .pose_detection.mediapipe_detector import MediaPipePoseDetector
    from .trainer import RepCoachTrainer

    detector = None
    voice = None
    try:
        print("Initializing Rep Coach...")
        session = ExerciseSession.for_exercise(args.exercise, args.config)
        detector = MediaPipePoseDetector(args.model)
        voice = None if args.no_voice else VoiceFeedback()
        trainer = RepCoachTrainer(session, detector, voice_feedback=voice,
                                  min_frame_interval=args.min_frame_interval)
        if args.mode == 'video':
            trainer.run_video(args.video)
        else:
            trainer.start(camera_id=args.camera)
        print(f"Total {session.profile.display_name.lower()}s: {session.count}")
    except Exception as e:
        print(f"Error starting trainer: {e}")
        traceback.print_exc()
        return 1
    finally:
        if detector is not None:
            detector.close()
        if voice is not None:
            voice.close()
    return 0


if __name__ == "__main__":
    sys.exit(main())
