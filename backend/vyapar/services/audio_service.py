# FILE: backend/vyapar/services/audio_service.py
# Wraps raw PCM from the speech provider into a WAV data URL.

import base64
import io
import wave

SAMPLE_RATE = 24000
CHANNELS = 1
SAMPLE_WIDTH = 2  # 16-bit

def pcm_to_wav(pcm: bytes, channels: int = CHANNELS, rate: int = SAMPLE_RATE, sample_width: int = SAMPLE_WIDTH) -> bytes:
    buffer = io.BytesIO()
    with wave.open(buffer, "wb") as writer:
        writer.setnchannels(channels)
        writer.setsampwidth(sample_width)
        writer.setframerate(rate)
        writer.writeframes(pcm)
    return buffer.getvalue()

def pcm_to_wav_data_url(pcm: bytes) -> str:
    return "data:audio/wav;base64," + base64.b64encode(pcm_to_wav(pcm)).decode("utf-8")
