"""Detection pipeline: validation, frame sampling, engines and scoring.

  - validation.py — size/length/type checks run before any outbound call
  - frames.py     — evenly spaced video frame sampling (OpenCV)
  - edenai.py     — EdenAI vendor engine (bearer auth, async video jobs)
  - backend.py    — backend proxy engine (single analysis endpoint)
  - scoring.py    — provider result normalisation and averaging
  - service.py    — DetectionService, the orchestration entry point
"""
