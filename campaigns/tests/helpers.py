# campaigns/tests/helpers.py
import io

from django.core.files.uploadedfile import SimpleUploadedFile
from PIL import Image


def make_image_upload(name='cover.png', size=(1600, 1200), color=(200, 80, 40), image_format='PNG',
                      content_type='image/png'):
    buffer = io.BytesIO()
    Image.new('RGB', size, color).save(buffer, format=image_format)
    return SimpleUploadedFile(name, buffer.getvalue(), content_type=content_type)


def make_pdf_upload(name='government-id.pdf'):
    return SimpleUploadedFile(name, b'%PDF-1.4\n1 0 obj\n<<>>\nendobj\n%%EOF', content_type='application/pdf')


def make_video_upload(name='clip.mp4'):
    return SimpleUploadedFile(name, b'\x00\x00\x00\x18ftypmp42', content_type='video/mp4')


class FakeTimer:
    """threading.Timer stand-in that only runs when the test fires it"""

    def __init__(self, delay, function):
        self.delay = delay
        self.function = function
        self.daemon = False
        self.started = False
        self.cancelled = False
        self.finished = False

    def start(self):
        self.started = True

    def cancel(self):
        self.cancelled = True

    def fire(self):
        if self.started and not self.cancelled and not self.finished:
            self.finished = True
            self.function()


class FakeTimerFactory:
    def __init__(self):
        self.timers = []

    def __call__(self, delay, function):
        timer = FakeTimer(delay, function)
        self.timers.append(timer)
        return timer

    @property
    def active(self):
        return [timer for timer in self.timers if timer.started and not timer.cancelled and not timer.finished]

    def fire_all(self):
        for timer in self.active:
            timer.fire()
