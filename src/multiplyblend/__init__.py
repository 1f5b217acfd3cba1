"""multiplyblend — loop a GIF over a video with a multiply blend.

Runs a fixed ffmpeg filter graph locally: the overlay GIF is looped for
the whole video, scaled to the video's size, multiplied over it, and the
result is encoded to an H.264/AAC mp4.
"""
