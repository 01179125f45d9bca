"""Brunsviga Interactive Demo.

A Gradio web interface for stepping through operator procedures on the
Brunsviga 13 RK emulator.

Usage:
    cd /path/to/brunsviga
    python demo/gradio_app.py

Features:
    - Choose an operation and enter its operands
    - Step forward and backward through the operator steps
    - Timed playback with a speed setting, pause and stop
    - Operate the machine by hand: levers, carriage, crank, clearing
    - Watch the result register, revolution counter and carriage
"""

import sys
from pathlib import Path

# Add src to path
sys.path.insert(0, str(Path(__file__).parent.parent / "src"))

import gradio as gr
from brunsviga import Brunsviga, SequencerStatus
from brunsviga.config import DEFAULT_PLAYBACK_MS
from brunsviga.logging_config import setup_logging
from brunsviga.operands import parse_integer


# =============================================================================
# Operations
# =============================================================================

OPERATIONS = {
    "Addition": ("addition", 2),
    "Subtraction": ("subtraction", 2),
    "Multiplication": ("multiplication", 2),
    "Division": ("division", 2),
    "Decimal division": ("decimal_division", 2),
    "Square root": ("square_root", 1),
}


# =============================================================================
# Playback Timer
# =============================================================================

class TimerScheduler:
    """Sequencer scheduler driven by the page's gr.Timer.

    call_later() only records the tick; the next timer event runs it. The
    scheduler is its own handle, so cancel() drops the pending tick.
    """

    def __init__(self):
        self._pending = None

    def call_later(self, delay, callback):
        self._pending = callback
        return self

    def cancel(self):
        self._pending = None

    def fire(self):
        callback, self._pending = self._pending, None
        if callback is not None:
            callback()


# =============================================================================
# Rendering
# =============================================================================

def render(calculator: Brunsviga, message: str = "") -> tuple:
    """Render the calculator as (status, registers, steps) text."""
    snap = calculator.snapshot()
    status_lines = [
        f"Status: {snap.status.value}",
        f"Step: {snap.cursor + 1} / {snap.total_steps}",
        "",
        message or snap.description,
    ]
    return "\n".join(status_lines), calculator.format_registers(), calculator.format_steps()


def _ensure(calculator):
    return calculator if calculator is not None else Brunsviga(scheduler=TimerScheduler())


def load_operation(name: str, operand_a: str, operand_b: str, calculator: Brunsviga) -> tuple:
    """Generate the chosen operation and load it."""
    calculator = _ensure(calculator)

    operation, arity = OPERATIONS[name]
    operands = [operand_a, operand_b][:arity]
    result = calculator.run(operation, *operands)

    message = "" if result.valid else f"Error: {result.error}"
    return (*render(calculator, message), calculator)


def step_forward(calculator: Brunsviga) -> tuple:
    calculator = _ensure(calculator)
    calculator.step_forward()
    return (*render(calculator), calculator)


def step_back(calculator: Brunsviga) -> tuple:
    calculator = _ensure(calculator)
    calculator.step_back()
    return (*render(calculator), calculator)


def run_to_end(calculator: Brunsviga) -> tuple:
    calculator = _ensure(calculator)
    calculator.run_to_end()
    return (*render(calculator), calculator)


def stop(calculator: Brunsviga) -> tuple:
    calculator = _ensure(calculator)
    calculator.stop()
    return (*render(calculator), calculator, gr.Timer(active=False))


def play(speed_ms: float, calculator: Brunsviga) -> tuple:
    """Start timed playback; the page timer ticks at the chosen speed."""
    calculator = _ensure(calculator)
    speed = int(speed_ms or DEFAULT_PLAYBACK_MS)
    started = calculator.play(speed)
    return (*render(calculator), calculator, gr.Timer(value=speed / 1000.0, active=started))


def pause(calculator: Brunsviga) -> tuple:
    calculator = _ensure(calculator)
    calculator.pause()
    return (*render(calculator), calculator, gr.Timer(active=False))


def tick(calculator: Brunsviga) -> tuple:
    """Timer event: run the pending playback tick, stop ticking once paused."""
    calculator = _ensure(calculator)
    calculator.sequencer.scheduler.fire()
    playing = calculator.status == SequencerStatus.PLAYING
    return (*render(calculator), calculator, gr.Timer(active=playing))


# =============================================================================
# Manual Operation
# =============================================================================

def operator_action(apply):
    """Wrap a direct machine action as a button handler."""

    def handler(calculator: Brunsviga) -> tuple:
        calculator = _ensure(calculator)
        apply(calculator)
        return (*render(calculator), calculator)

    return handler


def turn_lever(delta: int):
    def handler(position: float, calculator: Brunsviga) -> tuple:
        calculator = _ensure(calculator)
        if delta > 0:
            calculator.increment_input_digit(int(position))
        else:
            calculator.decrement_input_digit(int(position))
        return (*render(calculator), calculator)

    return handler


def set_input(value: str, calculator: Brunsviga) -> tuple:
    calculator = _ensure(calculator)
    number = parse_integer(value)
    if number is None:
        return (*render(calculator, f"Error: '{value}' is not a whole number"), calculator)
    calculator.set_input(number)
    return (*render(calculator), calculator)


# =============================================================================
# Gradio Interface
# =============================================================================

def create_demo():
    """Create and return the Gradio demo interface."""

    with gr.Blocks(title="Brunsviga 13 RK") as demo:
        gr.Markdown("""
        # Brunsviga 13 RK: Pinwheel Calculator Emulator

        Every calculation is done the way an operator did it on the real
        machine: set the levers, move the carriage, turn the crank.
        """)

        calculator_state = gr.State(None)
        timer = gr.Timer(value=DEFAULT_PLAYBACK_MS / 1000.0, active=False)

        with gr.Row():
            with gr.Column(scale=2):
                gr.Markdown("### Operation")

                operation_dropdown = gr.Dropdown(
                    choices=list(OPERATIONS.keys()),
                    value="Multiplication",
                    label="Algorithm"
                )
                with gr.Row():
                    operand_a = gr.Textbox(value="12", label="Operand A")
                    operand_b = gr.Textbox(value="3", label="Operand B (unused for square root)")

                load_button = gr.Button("Load Algorithm", variant="primary")

                with gr.Row():
                    back_button = gr.Button("Step Back")
                    forward_button = gr.Button("Step Forward")
                    end_button = gr.Button("Run to End")

                with gr.Row():
                    play_button = gr.Button("Play")
                    pause_button = gr.Button("Pause")
                    stop_button = gr.Button("Stop")

                speed_slider = gr.Slider(
                    minimum=100,
                    maximum=3000,
                    value=DEFAULT_PLAYBACK_MS,
                    step=100,
                    label="Playback Speed (ms per step)"
                )

                gr.Markdown("### Manual Operation")

                with gr.Row():
                    lever_position = gr.Number(
                        value=12,
                        precision=0,
                        label="Lever",
                        info="0 = leftmost, 12 = units"
                    )
                    lever_up_button = gr.Button("Lever Up")
                    lever_down_button = gr.Button("Lever Down")

                with gr.Row():
                    input_value = gr.Textbox(value="0", label="Input Value")
                    set_input_button = gr.Button("Set Input")

                with gr.Row():
                    carriage_left_button = gr.Button("Carriage Left")
                    carriage_right_button = gr.Button("Carriage Right")
                    crank_forward_button = gr.Button("Crank Forward")
                    crank_backward_button = gr.Button("Crank Backward")

                with gr.Row():
                    clear_result_button = gr.Button("Clear Result")
                    clear_input_button = gr.Button("Clear Input")
                    clear_counter_button = gr.Button("Clear Counter")

            with gr.Column(scale=3):
                with gr.Row():
                    status_output = gr.Textbox(label="Status", lines=5, interactive=False)
                    registers_output = gr.Textbox(label="Machine", lines=5, interactive=False)

                steps_output = gr.Textbox(label="Operator Steps", lines=20, interactive=False)

        with gr.Accordion("Machine Reference", open=False):
            gr.Markdown("""
            | Part | Description |
            |------|-------------|
            | Result register | 13-digit accumulator |
            | Input register | 13 setting levers |
            | Carriage | shifts the input against the result, positions -6 to +6 |
            | Revolution counter | 8 digits, counts crank turns at the carriage position; red (negative) when turning backward |
            | Bell | rings when a backward turn overdraws the result register |
            """)

        outputs = [status_output, registers_output, steps_output, calculator_state]
        timed_outputs = outputs + [timer]

        load_button.click(
            fn=load_operation,
            inputs=[operation_dropdown, operand_a, operand_b, calculator_state],
            outputs=outputs
        )
        forward_button.click(fn=step_forward, inputs=[calculator_state], outputs=outputs)
        back_button.click(fn=step_back, inputs=[calculator_state], outputs=outputs)
        end_button.click(fn=run_to_end, inputs=[calculator_state], outputs=outputs)

        play_button.click(fn=play, inputs=[speed_slider, calculator_state], outputs=timed_outputs)
        pause_button.click(fn=pause, inputs=[calculator_state], outputs=timed_outputs)
        stop_button.click(fn=stop, inputs=[calculator_state], outputs=timed_outputs)
        timer.tick(fn=tick, inputs=[calculator_state], outputs=timed_outputs)

        lever_up_button.click(
            fn=turn_lever(1), inputs=[lever_position, calculator_state], outputs=outputs
        )
        lever_down_button.click(
            fn=turn_lever(-1), inputs=[lever_position, calculator_state], outputs=outputs
        )
        set_input_button.click(fn=set_input, inputs=[input_value, calculator_state], outputs=outputs)

        manual_buttons = [
            (carriage_left_button, lambda c: c.move_carriage(-1)),
            (carriage_right_button, lambda c: c.move_carriage(1)),
            (crank_forward_button, lambda c: c.crank(1)),
            (crank_backward_button, lambda c: c.crank(-1)),
            (clear_result_button, lambda c: c.clear_result()),
            (clear_input_button, lambda c: c.clear_input()),
            (clear_counter_button, lambda c: c.clear_revolution()),
        ]
        for button, apply in manual_buttons:
            button.click(fn=operator_action(apply), inputs=[calculator_state], outputs=outputs)

    return demo


# =============================================================================
# Main
# =============================================================================

if __name__ == "__main__":
    setup_logging()
    demo = create_demo()
    demo.launch(
        share=False,
        server_name="0.0.0.0",
        server_port=7861,
        show_error=True
    )
